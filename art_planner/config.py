# art_planner/config.py

from typing import Dict, List, Optional
from pathlib import Path
import json
import logging
import sys

from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from pythonjsonlogger.json import JsonFormatter

load_dotenv()

# Custom JSON formatter that excludes null/None fields
class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter that only includes fields with non-None values."""

    def add_fields(self, log_record, record, message_dict):
        """Override to filter out None values before adding to JSON output."""
        super().add_fields(log_record, record, message_dict)

        for key, value in list(log_record.items()):
            if value is None:
                del log_record[key]

def setup_json_logging(log_level: int = logging.INFO) -> None:
    """Initialize JSON logging configuration for the planner."""
    handler = logging.StreamHandler(sys.stdout)

    # JSON formatter with common fields used across the planning pipeline
    formatter = CustomJsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(pi_id)s %(item_id)s %(team_id)s %(iteration_id)s %(stage)s "
        "%(count)s %(total)s %(warning)s %(reason)s "
        "%(wsjf_score)s %(readiness_score)s"
    )

    handler.setFormatter(formatter)

    root_logger = logging.getLogger("art_planner")
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers = []

    root_logger.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    root_logger.propagate = False


BASE_DIR = Path(__file__).resolve().parent.parent  # project root folder


DEFAULT_DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "frontend": ["ui", "ux", "frontend", "interface", "react", "css", "page", "screen"],
    "backend": ["api", "backend", "service", "endpoint", "server", "database"],
    "data": ["data", "etl", "pipeline", "analytics", "report", "warehouse", "schema"],
    "infrastructure": ["infrastructure", "deployment", "ci", "cd", "kubernetes", "monitoring", "devops"],
    "security": ["security", "auth", "authentication", "authorization", "encryption", "oauth"],
    "mobile": ["mobile", "ios", "android", "app"],
    "testing": ["testing", "qa", "test", "automation", "regression"],
}


class Settings(BaseSettings):
    # App
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Decomposition
    DECOMPOSITION_THRESHOLD: int = 5
    DECOMPOSITION_MIN_CHILDREN: int = 2
    DECOMPOSITION_MAX_CHILDREN: int = 5
    # Abort the run on the first item that cannot be split (otherwise keep it with a warning)
    DECOMPOSITION_STRICT: bool = False

    # Scoring (neutral midpoint on a 1-5 scale for missing estimates)
    SCORING_CRITICAL_PATH_RISK_MULTIPLIER: float = 1.2
    SCORING_DEFAULT_BUSINESS_VALUE: float = 3.0
    SCORING_DEFAULT_TIME_CRITICALITY: float = 3.0
    SCORING_DEFAULT_RISK_OPPORTUNITY: float = 3.0

    # Planning
    PLANNING_ITERATION_LENGTH_DAYS: int = 14
    PLANNING_TARGET_UTILIZATION: float = 0.85
    PLANNING_READY_THRESHOLD: float = 0.8
    PLANNING_READINESS_WEIGHT_DEPENDENCIES: float = 0.4
    PLANNING_READINESS_WEIGHT_CAPACITY: float = 0.3
    PLANNING_READINESS_WEIGHT_VALUE: float = 0.3
    PLANNING_DOMAIN_KEYWORDS: Dict[str, List[str]] = DEFAULT_DOMAIN_KEYWORDS
    # Readiness optimizer post-pass (moves work to fill idle iterations and unblock bottlenecks)
    PLANNING_OPTIMIZE_READINESS: bool = False
    PLANNING_MAX_REBALANCE_MOVES: int = 10
    PLANNING_BOTTLENECK_MIN_DEPENDENTS: int = 3

    # Optional path to JSON file overriding PLANNING_DOMAIN_KEYWORDS
    PLANNING_DOMAIN_KEYWORDS_FILE: Optional[str] = None

    # Scenario runner
    PLANNING_MAX_WORKERS: int = 4

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator(
        "DECOMPOSITION_THRESHOLD",
        "PLANNING_ITERATION_LENGTH_DAYS",
        "PLANNING_MAX_WORKERS",
        "PLANNING_BOTTLENECK_MIN_DEPENDENTS",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def load_domain_keywords_from_file(self) -> "Settings":
        """
        If PLANNING_DOMAIN_KEYWORDS_FILE is set, read that JSON file
        and use it to populate PLANNING_DOMAIN_KEYWORDS.
        """
        if self.PLANNING_DOMAIN_KEYWORDS_FILE:
            cfg_path = Path(self.PLANNING_DOMAIN_KEYWORDS_FILE)
            if not cfg_path.is_absolute():
                cfg_path = BASE_DIR / cfg_path

            if not cfg_path.exists():
                raise FileNotFoundError(
                    f"PLANNING_DOMAIN_KEYWORDS_FILE points to {cfg_path}, but it does not exist."
                )

            with cfg_path.open("r", encoding="utf-8") as f:
                raw = json.load(f)

            if not isinstance(raw, dict):
                raise ValueError(
                    "PLANNING_DOMAIN_KEYWORDS file must contain a JSON object of specialization -> keyword list."
                )

            self.PLANNING_DOMAIN_KEYWORDS = {
                str(k).lower(): [str(w).lower() for w in (v or [])] for k, v in raw.items()
            }

        return self


settings = Settings()
