"""
Core interfaces and abstract base classes for PIP Assist components.
Defines contracts for storage, AI completion, payment checkout and configuration.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any

from pipassist.models import Attachment


class KeyValueStoreInterface(ABC):
    """Interface for the local persisted store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string for a key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a string under a key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key if present."""
        pass


class CompletionClientInterface(ABC):
    """Interface for the generative AI completion service."""

    @abstractmethod
    def send_request(
        self,
        prompt: str,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        attachments: Optional[List[Attachment]] = None,
    ) -> str:
        """Send a prompt and return the raw response text."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the service is reachable."""
        pass


class CheckoutInterface(ABC):
    """Interface for the hosted payment checkout."""

    @abstractmethod
    def create_session(self, module_id: str, lang: str = "en") -> Dict[str, Any]:
        """Create a checkout session and return its handle."""
        pass

    @abstractmethod
    def handle_return(
        self, module_id: str, session_id: Optional[str] = None, cancelled: bool = False
    ) -> bool:
        """Process the redirect back from checkout. Returns True when unlocked."""
        pass


class ConfigurationInterface(ABC):
    """Interface for configuration management."""

    @abstractmethod
    def load_config(self, config_path: Optional[str] = None) -> Dict[str, Any]:
        """Load configuration from file."""
        pass

    @abstractmethod
    def save_config(
        self, config: Dict[str, Any], config_path: Optional[str] = None
    ) -> None:
        """Save configuration to file."""
        pass

    @abstractmethod
    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        pass

    @abstractmethod
    def validate_config(self, config: Dict[str, Any]) -> bool:
        """Validate configuration structure and values."""
        pass
