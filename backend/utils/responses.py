# utils/responses.py
from fastapi import HTTPException, status

from services.results import ErrorKind, OperationResult

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Returns the data of a successful service result, raises HTTPException otherwise
def unwrap(result: OperationResult):
    if result.success:
        return result.data
    kind = result.error_kind or ErrorKind.INTERNAL
    raise HTTPException(
        status_code=STATUS_BY_KIND[kind],
        detail={"message": result.message, "kind": kind.value, "errors": result.errors},
    )
