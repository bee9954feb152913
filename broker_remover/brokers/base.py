"""Base class for data broker implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass(frozen=True)
class FormField:
    """One input on a broker's opt-out form."""
    name: str
    selector: str
    type: str  # text, email, tel, url, textarea, select, checkbox
    label: str
    required: bool = True
    options: Optional[tuple[str, ...]] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["options"] = list(self.options) if self.options else None
        return data


@dataclass
class BrokerInfo:
    """Data broker information."""
    name: str
    domain: str
    category: str
    opt_out_url: str
    opt_out_method: str  # form, email, api, manual
    difficulty: str  # easy, medium, hard
    data_types: list[str] = field(default_factory=list)
    response_days: Optional[int] = None
    regions: Optional[list[str]] = None
    laws: Optional[list[str]] = None
    premium: bool = False

    def to_seed(self) -> dict:
        return asdict(self)


DEFAULT_FORM_FIELDS = [
    FormField("email", 'input[type="email"], input[name="email"]', "email", "Email address"),
    FormField("full_name", 'input[name="name"], input[name="full_name"]', "text", "Full name"),
    FormField("phone", 'input[type="tel"], input[name="phone"]', "tel", "Phone number", required=False),
    FormField("additional_info", 'textarea[name="comments"], textarea', "textarea", "Additional information", required=False),
    FormField("consent", 'input[type="checkbox"][name="consent"]', "checkbox", "I confirm this request concerns my own data"),
]


class BaseBroker(ABC):
    """Base class for data broker implementations."""

    @property
    @abstractmethod
    def info(self) -> BrokerInfo:
        """Return broker information."""
        pass

    @abstractmethod
    def form_fields(self) -> list[FormField]:
        """Return the fields of this broker's opt-out form."""
        pass

    def matches_host(self, host: str) -> bool:
        """True for the broker's domain or any of its subdomains."""
        host = host.lower().rstrip(".")
        domain = self.info.domain
        return host == domain or host.endswith("." + domain)
