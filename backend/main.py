# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db

from routes.products import router as products_router
from routes.stock import router as stock_router
from routes.alerts import router as alerts_router
from routes.batches import router as batches_router
from routes.suppliers import router as suppliers_router
from routes.sales import router as sales_router
from routes.stats import router as stats_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Initialisation
init_db()

app = FastAPI(title="Stock Ledger API", version="1.0.0")

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(products_router)
app.include_router(alerts_router)
app.include_router(batches_router)
app.include_router(suppliers_router)
app.include_router(sales_router)
app.include_router(stats_router)
app.include_router(logs_router)

# Stock ledger
app.include_router(stock_router, prefix="/stock")

@app.get("/")
def read_root():
    return {"message": "Stock Ledger API is running"}
