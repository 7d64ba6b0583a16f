from dataclasses import dataclass
from typing import Generic, TypeVar, Union




T = TypeVar("T")


@dataclass
class Plain(Generic[T]):
    items: list[T]


@dataclass
class Paged(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.page_size > 0 else 0


ListResult = Union[Plain[T], Paged[T]]


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size
