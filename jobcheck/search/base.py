from abc import ABC, abstractmethod

from jobcheck.models import SearchResponse


class SearchBase(ABC):
    @abstractmethod
    def search(self, name: str, company: str) -> SearchResponse:
        pass
