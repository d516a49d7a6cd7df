"""
Request/Response Schemas
========================
Shapes shared by several API responses.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Pagination:
    """Pagination block returned with every list endpoint."""
    page: int
    limit: int
    total: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict:
        return {
            'currentPage': self.page,
            'totalPages': self.total_pages,
            'totalItems': self.total,
            'itemsPerPage': self.limit,
            'hasNextPage': self.page < self.total_pages,
            'hasPrevPage': self.page > 1,
        }


@dataclass
class ApiResponse:
    """Standard JSON envelope."""
    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    errors: Optional[list] = None

    def to_dict(self) -> dict:
        result = {'success': self.success}
        if self.message:
            result['message'] = self.message
        if self.data is not None:
            result['data'] = self.data
        if self.errors:
            result['errors'] = self.errors
        return result
