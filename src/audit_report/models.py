"""Pydantic models for the audit record consumed by the renderer."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

log = logging.getLogger(__name__)


# ── Closed vocabularies ─────────────────────────────────────────────────────

class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    INFORMATIONAL = "Informational"

    @classmethod
    def parse(cls, value: object) -> Severity:
        """Map a raw severity string (any case, legacy tier names) to a member.

        Blank values give Informational. Unrecognised values are logged and
        also give Informational.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if not key:
            return cls.INFORMATIONAL
        try:
            return _SEVERITY_ALIASES[key]
        except KeyError:
            log.warning("Unknown severity %r, using %s", value, cls.INFORMATIONAL.value)
            return cls.INFORMATIONAL


# Fixed precedence used for grouping, tables and legends.
SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFORMATIONAL,
)

_SEVERITY_ALIASES = {
    "critical": Severity.CRITICAL,
    "high": Severity.HIGH,
    "major": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "low": Severity.LOW,
    "minor": Severity.LOW,
    "informational": Severity.INFORMATIONAL,
    "info": Severity.INFORMATIONAL,
}


class FindingStatus(str, Enum):
    DETECTED = "Detected"
    PASS = "Pass"
    NOT_DETECTED = "Not Detected"
    FAIL = "Fail"
    ACKNOWLEDGE = "Acknowledge"

    @classmethod
    def parse(cls, value: object) -> FindingStatus:
        """Same fallback rules as Severity.parse, defaulting to Detected."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", " ").replace("-", " ")
        if not key:
            return cls.DETECTED
        try:
            return _STATUS_ALIASES[key]
        except KeyError:
            log.warning("Unknown finding status %r, using %s", value, cls.DETECTED.value)
            return cls.DETECTED

    @property
    def is_active(self) -> bool:
        """Passing/clean statuses are not reported as open findings."""
        return self not in (FindingStatus.PASS, FindingStatus.NOT_DETECTED)


_STATUS_ALIASES = {
    "detected": FindingStatus.DETECTED,
    "pending": FindingStatus.DETECTED,
    "pass": FindingStatus.PASS,
    "passed": FindingStatus.PASS,
    "fixed": FindingStatus.PASS,
    "resolved": FindingStatus.PASS,
    "not detected": FindingStatus.NOT_DETECTED,
    "fail": FindingStatus.FAIL,
    "failed": FindingStatus.FAIL,
    "acknowledge": FindingStatus.ACKNOWLEDGE,
    "acknowledged": FindingStatus.ACKNOWLEDGE,
}


# ── Base ────────────────────────────────────────────────────────────────────

class _RecordModel(BaseModel):
    """Frozen input model; explicit nulls fall back to field defaults."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ── Findings ────────────────────────────────────────────────────────────────

class Finding(_RecordModel):
    id: str = ""
    title: str = "Unnamed Finding"
    severity: Severity = Severity.INFORMATIONAL
    status: FindingStatus = FindingStatus.DETECTED
    category: str = ""
    description: str = ""
    location: str = ""
    recommendation: str = ""
    alleviation: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value):
        return Severity.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return FindingStatus.parse(value)

    @property
    def is_active(self) -> bool:
        return self.status.is_active


class SeverityCounts(_RecordModel):
    found: int = Field(default=0, ge=0)
    pending: int = Field(default=0, ge=0)
    resolved: int = Field(default=0, ge=0)

    @property
    def is_consistent(self) -> bool:
        return self.found >= self.pending + self.resolved


# ── Project metadata ────────────────────────────────────────────────────────

class ContractInfo(_RecordModel):
    address: str = Field(default="", validation_alias=AliasChoices("address", "contract_address"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "contract_name"))
    language: str = Field(default="", validation_alias=AliasChoices("language", "contract_language"))
    owner: str = Field(default="", validation_alias=AliasChoices("owner", "contract_owner"))
    deployer: str = Field(default="", validation_alias=AliasChoices("deployer", "contract_deployer"))
    created: str = Field(default="", validation_alias=AliasChoices("created", "contract_created"))
    verified: bool = Field(default=False, validation_alias=AliasChoices("verified", "contract_verified"))
    compiler: str = Field(default="", validation_alias=AliasChoices("compiler", "contract_compiler"))
    license: str = Field(default="", validation_alias=AliasChoices("license", "contract_license"))


# Display order for the social links table.
_SOCIAL_LABELS = (
    ("website", "Website"),
    ("telegram", "Telegram"),
    ("twitter", "Twitter"),
    ("github", "GitHub"),
    ("discord", "Discord"),
    ("medium", "Medium"),
    ("reddit", "Reddit"),
    ("cmc", "CoinMarketCap"),
    ("cg", "CoinGecko"),
)


class Socials(_RecordModel):
    website: str = ""
    telegram: str = ""
    twitter: str = ""
    github: str = ""
    discord: str = ""
    medium: str = ""
    reddit: str = ""
    cmc: str = ""
    cg: str = ""

    def links(self) -> list[tuple[str, str]]:
        """(label, url) pairs for every non-empty link, in display order."""
        out: list[tuple[str, str]] = []
        for attr, label in _SOCIAL_LABELS:
            value = getattr(self, attr).strip()
            if value and value.upper() != "N/A":
                out.append((label, value))
        return out


class Timeline(_RecordModel):
    request: str | None = Field(default=None, validation_alias=AliasChoices("request", "audit_request"))
    onboarding: str | None = Field(default=None, validation_alias=AliasChoices("onboarding", "onboarding_process"))
    preview: str | None = Field(default=None, validation_alias=AliasChoices("preview", "audit_preview"))
    release: str | None = Field(default=None, validation_alias=AliasChoices("release", "audit_release"))


class Overview(_RecordModel):
    """Boolean risk flags from the contract review; True means the risk is present."""

    honeypot: bool = False
    hidden_owner: bool = False
    mint: bool = False
    blacklist: bool = False
    whitelist: bool = False
    proxy_check: bool = False
    trading_cooldown: bool = False
    max_tax: bool = False
    anti_whale: bool = Field(default=False, validation_alias=AliasChoices("anti_whale", "anit_whale"))
    pause_trade: bool = False
    pause_transfer: bool = False
    can_take_ownership: bool = False
    self_destruct: bool = False
    external_call: bool = False
    modify_tax: bool = False
    cannot_buy: bool = False
    cannot_sell: bool = False
    max_transaction: bool = False
    max_wallet: bool = False
    enable_trading: bool = False
    anti_bot: bool = False
    others: bool = False
    buy_tax: float = 0.0
    sell_tax: float = 0.0

    @field_validator("buy_tax", "sell_tax", mode="before")
    @classmethod
    def _blank_tax(cls, value):
        if isinstance(value, str):
            value = value.strip().rstrip("%")
            return value or 0.0
        return value


class Scores(_RecordModel):
    owner: float | None = Field(default=None, ge=0, le=100)
    social: float | None = Field(default=None, ge=0, le=100)
    security: float | None = Field(default=None, ge=0, le=100)
    auditor: float | None = Field(default=None, ge=0, le=100)
    overall: float | None = Field(default=None, ge=0, le=100)


class Kyc(_RecordModel):
    is_kyc: bool = False
    url: str = ""
    vendor: str = ""
    score: float | None = None
    notes: str = ""

    @property
    def is_present(self) -> bool:
        return bool(self.is_kyc or self.url or self.vendor or self.notes or self.score is not None)


class DistributionEntry(_RecordModel):
    name: str = ""
    amount: str = ""
    description: str = ""


class TokenDistribution(_RecordModel):
    enabled: bool = Field(default=False, validation_alias=AliasChoices("enabled", "isEnable", "is_enabled"))
    liquidity_lock: bool = Field(default=False, validation_alias=AliasChoices("liquidity_lock", "isLiquidityLock"))
    lock_link: str = Field(default="", validation_alias=AliasChoices("lock_link", "liquidityLockLink"))
    lock_amount: str = Field(default="", validation_alias=AliasChoices("lock_amount", "lockAmount"))
    lock_location: str = Field(default="", validation_alias=AliasChoices("lock_location", "lockLocation"))
    distributions: list[DistributionEntry] = Field(default_factory=list)

    @property
    def should_render(self) -> bool:
        return self.enabled and bool(self.distributions)


class Diagrams(_RecordModel):
    is_graph: bool = False
    graph_url: str = ""
    is_inheritance: bool = False
    inheritance_url: str = ""


# ── Record ──────────────────────────────────────────────────────────────────

# Flat keys emitted by the record-fetch service, folded into nested groups.
_LEGACY_GROUPS: dict[str, dict[str, str]] = {
    "scores": {
        "audit_score": "overall",
        "ownerScore": "owner",
        "owner_score": "owner",
        "socialScore": "social",
        "social_score": "social",
        "securityScore": "security",
        "security_score": "security",
        "auditorScore": "auditor",
        "auditor_score": "auditor",
    },
    "kyc": {
        "isKYC": "is_kyc",
        "kycURL": "url",
        "kycUrl": "url",
        "kycVendor": "vendor",
        "kycScore": "score",
        "kycScoreNotes": "notes",
    },
    "diagrams": {
        "isGraph": "is_graph",
        "graphUrl": "graph_url",
        "graph_url": "graph_url",
        "isInheritance": "is_inheritance",
        "inheritanceUrl": "inheritance_url",
        "inheritance_url": "inheritance_url",
    },
}

_TOTALS_TO_TIERS = (
    ("critical", "critical"),
    ("high", "major"),
    ("medium", "medium"),
    ("low", "minor"),
    ("informational", "informational"),
)


class AuditRecord(_RecordModel):
    """Complete input for one report. Immutable for the duration of a render."""

    name: str
    slug: str
    symbol: str = ""
    decimals: int | None = None
    supply: str = ""
    description: str = ""
    platform: str = ""
    launchpad: str = ""
    published: bool = False
    confidence: str = Field(default="Medium", validation_alias=AliasChoices("confidence", "audit_confidence"))
    created_at: str | None = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    contract_info: ContractInfo = Field(default_factory=ContractInfo)
    socials: Socials = Field(default_factory=Socials)
    timeline: Timeline = Field(default_factory=Timeline)
    overview: Overview = Field(default_factory=Overview)

    critical: SeverityCounts = Field(default_factory=SeverityCounts)
    major: SeverityCounts = Field(default_factory=SeverityCounts, validation_alias=AliasChoices("major", "high"))
    medium: SeverityCounts = Field(default_factory=SeverityCounts)
    minor: SeverityCounts = Field(default_factory=SeverityCounts, validation_alias=AliasChoices("minor", "low"))
    informational: SeverityCounts = Field(default_factory=SeverityCounts)

    findings: list[Finding] = Field(default_factory=list)
    token_distribution: TokenDistribution = Field(default_factory=TokenDistribution)
    scores: Scores = Field(default_factory=Scores)
    kyc: Kyc = Field(default_factory=Kyc)
    diagrams: Diagrams = Field(default_factory=Diagrams)

    @model_validator(mode="before")
    @classmethod
    def _lift_legacy_fields(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for group, mapping in _LEGACY_GROUPS.items():
            nested = dict(data.get(group) or {})
            for flat, key in mapping.items():
                if flat not in data:
                    continue
                value = data.pop(flat)
                if value is not None:
                    nested.setdefault(key, value)
            if nested:
                data[group] = nested
        if data.get("cfg_findings") is not None:
            data["findings"] = data.pop("cfg_findings")
        if "tokenDistribution" in data:
            data.setdefault("token_distribution", data.pop("tokenDistribution"))
        totals = data.pop("findings_totals", None)
        if isinstance(totals, dict):
            for src, dst in _TOTALS_TO_TIERS:
                if src in totals and data.get(dst) is None:
                    data[dst] = totals[src]
        return data

    @model_validator(mode="after")
    def _warn_inconsistent_counts(self):
        for severity, counts in self.severity_tiers:
            if not counts.is_consistent:
                log.warning(
                    "%s: %s tier has found=%d < pending=%d + resolved=%d (displayed as-is)",
                    self.slug, severity.value, counts.found, counts.pending, counts.resolved,
                )
        return self

    @property
    def severity_tiers(self) -> tuple[tuple[Severity, SeverityCounts], ...]:
        return (
            (Severity.CRITICAL, self.critical),
            (Severity.HIGH, self.major),
            (Severity.MEDIUM, self.medium),
            (Severity.LOW, self.minor),
            (Severity.INFORMATIONAL, self.informational),
        )

    @computed_field
    @property
    def active_findings(self) -> list[Finding]:
        return [f for f in self.findings if f.is_active]

    @computed_field
    @property
    def total_found(self) -> int:
        return sum(counts.found for _, counts in self.severity_tiers)
