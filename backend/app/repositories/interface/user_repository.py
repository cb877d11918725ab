from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from app.domain.models import User


class UserRepository(ABC):
    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional["User"]:
        pass

    @abstractmethod
    def get_by_username(self, username: str) -> Optional["User"]:
        pass

    @abstractmethod
    def create(self, user: "User") -> "User":
        pass 
    
    @abstractmethod
    def get_by_email(self, email: str) -> Optional["User"]:
        pass 
    
    @abstractmethod
    def update(self, user: "User") -> "User":
        pass 
    
    @abstractmethod
    def delete(self, user_id: int) -> bool:
      pass 
    
    @abstractmethod
    def get_all(self) -> List["User"]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def count_since(self, since: datetime) -> int:
        pass

    @abstractmethod
    def get_recent(self, limit: int) -> List["User"]:
        pass

    @abstractmethod
    def list_users(
        self,
        page: int,
        limit: int,
        search: Optional[str] = None,
        is_admin: Optional[bool] = None,
        is_active: Optional[bool] = None
    ) -> Tuple[List["User"], int]:
        pass
