from fastapi import HTTPException, status

from progressly.core.results import OperationResult


def raise_for_result(result: OperationResult) -> OperationResult:
    """Turn a failed OperationResult into a 404 or 400 HTTPException."""
    if result.success:
        return result
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
