# expense_tracker/outputs/base.py
from abc import ABC, abstractmethod

class BaseOutput(ABC):
    @abstractmethod
    def write(self, expenses, path=None):
        """Write expenses to the chosen sink and return the file path."""
        pass
