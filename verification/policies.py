"""
Visa eligibility policies.

A PolicyTable is an immutable set of per-visa-type policies that the
eligibility engine receives explicitly. The default table is built from
config.VISA_POLICIES, or from the YAML file named by VISA_POLICY_FILE:

    tourist:
      min_age: 18
      min_passport_validity_months: 6
    work:
      min_age: 18
      max_age: 65
      min_passport_validity_months: 12
      denied_nationalities: [XXX]
"""
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from config import settings, VISA_POLICIES

logger = logging.getLogger(__name__)


class PolicyConfigError(ValueError):
    """Raised when a policy definition cannot be loaded"""


class EligibilityPolicy(BaseModel):
    # snake_case on input, camelCase keys when dumped by alias
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    visa_type: str
    min_age: int
    max_age: Optional[int] = None
    min_passport_validity_months: int
    # None means no restriction
    allowed_nationalities: Optional[FrozenSet[str]] = None
    denied_nationalities: Optional[FrozenSet[str]] = None
    requires_valid_passport: bool = True

    @field_validator("visa_type")
    @classmethod
    def _lower_visa_type(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("allowed_nationalities", "denied_nationalities", mode="before")
    @classmethod
    def _upper_nationalities(cls, value: Any) -> Any:
        if value is None:
            return None
        return frozenset(str(code).strip().upper() for code in value)


class PolicyTable:
    """Read-only mapping of visa type to policy, with a fallback type"""

    def __init__(self, policies: Mapping[str, EligibilityPolicy], default_visa_type: str = "tourist"):
        table = {key.strip().lower(): policy for key, policy in policies.items()}
        default_key = default_visa_type.strip().lower()
        if default_key not in table:
            raise PolicyConfigError(f"Default visa type '{default_visa_type}' has no policy")
        self._policies = MappingProxyType(table)
        self.default_visa_type = default_key

    @classmethod
    def from_dict(cls,
                  raw: Mapping[str, Mapping[str, Any]],
                  default_visa_type: str = "tourist") -> "PolicyTable":
        """Build a table from plain dicts keyed by visa type"""
        policies: Dict[str, EligibilityPolicy] = {}
        for visa_type, body in raw.items():
            if not isinstance(body, Mapping):
                raise PolicyConfigError(f"Policy for '{visa_type}' must be a mapping")
            try:
                policies[visa_type] = EligibilityPolicy(visa_type=visa_type, **body)
            except (ValidationError, TypeError) as e:
                raise PolicyConfigError(f"Invalid policy for '{visa_type}': {e}") from e
        return cls(policies, default_visa_type=default_visa_type)

    def resolve(self, visa_type: Optional[str]) -> EligibilityPolicy:
        """Policy for visa_type, falling back to the default policy"""
        key = (visa_type or self.default_visa_type).strip().lower()
        policy = self._policies.get(key)
        if policy is None:
            logger.info("No policy for visa type %r, using %r", visa_type, self.default_visa_type)
            return self._policies[self.default_visa_type]
        return policy

    @property
    def visa_types(self) -> List[str]:
        return list(self._policies)

    def __contains__(self, visa_type: str) -> bool:
        return visa_type.strip().lower() in self._policies

    def __getitem__(self, visa_type: str) -> EligibilityPolicy:
        return self._policies[visa_type.strip().lower()]

    def __len__(self) -> int:
        return len(self._policies)


def load_policy_table(path: Union[str, Path], default_visa_type: str = "tourist") -> PolicyTable:
    """Load a policy table from a YAML file"""
    path = Path(path)
    if not path.exists():
        raise PolicyConfigError(f"Policy file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PolicyConfigError(f"Policy file is not valid YAML: {path}") from e

    if not isinstance(raw, dict):
        raise PolicyConfigError(f"Policy file must map visa types to policies: {path}")

    logger.info("Loaded %d visa policies from %s", len(raw), path)
    return PolicyTable.from_dict(raw, default_visa_type=default_visa_type)


@lru_cache(maxsize=1)
def default_policy_table() -> PolicyTable:
    """Policy table from VISA_POLICY_FILE when set, else the built-in policies"""
    if settings.VISA_POLICY_FILE:
        return load_policy_table(settings.VISA_POLICY_FILE, settings.DEFAULT_VISA_TYPE)
    return PolicyTable.from_dict(VISA_POLICIES, default_visa_type=settings.DEFAULT_VISA_TYPE)
