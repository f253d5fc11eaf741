import json
from typing import Any, Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, Field
from loguru import logger

JsonDict = Dict[str, Any]

GROUPS_CLAIM = "cognito:groups"


class Identity(BaseModel):
    """Verified caller identity. Derived per request, never persisted."""

    model_config = ConfigDict(frozen=True)

    subject: str
    email: Optional[str] = None
    groups: FrozenSet[str] = Field(default_factory=frozenset)

    def in_group(self, name: str) -> bool:
        return name in self.groups


def _parse_groups(raw: Any) -> FrozenSet[str]:
    """
    Normalizes the groups claim.

    Cognito sends a JSON list through AppSync and HTTP APIs, but REST API
    authorizers flatten it to a string such as "[Admins, Editors]" or
    "Admins,Editors". Group names may contain spaces, so only commas
    separate them. A missing claim is an empty set.
    """
    if not raw:
        return frozenset()

    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(g).strip() for g in raw if str(g).strip())

    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
                if isinstance(parsed, list):
                    return _parse_groups(parsed)
            except json.JSONDecodeError:
                pass
            text = text.strip("[]")
        parts = (p.strip().strip("\"'") for p in text.split(","))
        return frozenset(p for p in parts if p)

    logger.warning("Ignoring unexpected groups claim type: {}", type(raw).__name__)
    return frozenset()


def _claims_from_event(event: JsonDict) -> JsonDict:
    # AppSync direct resolver
    identity = event.get("identity")
    if isinstance(identity, dict):
        claims = dict(identity.get("claims") or {})
        if identity.get("sub") and "sub" not in claims:
            claims["sub"] = identity["sub"]
        if identity.get("groups") and GROUPS_CLAIM not in claims:
            claims[GROUPS_CLAIM] = identity["groups"]
        return claims

    # API Gateway (HTTP API jwt authorizer or REST API Cognito authorizer)
    ctx = event.get("requestContext") or {}
    authorizer = ctx.get("authorizer") or {}
    return (authorizer.get("jwt") or {}).get("claims") or authorizer.get("claims") or {}


def identity_from_claims(claims: JsonDict) -> Optional[Identity]:
    subject = claims.get("sub") or claims.get("username") or claims.get("cognito:username")
    if not subject:
        return None

    return Identity(
        subject=str(subject),
        email=claims.get("email") or None,
        groups=_parse_groups(claims.get(GROUPS_CLAIM)),
    )


def extract_identity(event: Optional[JsonDict]) -> Optional[Identity]:
    """Projects the caller identity from an API Gateway or AppSync event."""
    return identity_from_claims(_claims_from_event(event or {}))
