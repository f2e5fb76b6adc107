from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope shared by every JSON endpoint"""
    success: bool = True
    message: str
    data: Optional[DataT] = None
