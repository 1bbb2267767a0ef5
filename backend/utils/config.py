"""Configuration management for the invoice verifier."""

import os
import yaml
from dataclasses import dataclass, field


@dataclass
class BedrockConfig:
    """AWS Bedrock configuration."""
    model_id: str
    timeout: int
    max_retries: int
    retry_base_delay: float = 1.0


@dataclass
class RulesConfig:
    """Cross-validation heuristics and confidence scoring weights."""
    crew_hour_tolerance: float = 1.0
    mobilization_overcharge_ratio: float = 0.66
    base_confidence: float = 50.0
    work_completed_bonus: float = 20.0
    equipment_confirmed_bonus: float = 10.0
    crew_discrepancy_penalty: float = 15.0
    mobilization_penalty: float = 10.0
    photo_confidence_midpoint: float = 50.0
    photo_confidence_weight: float = 0.3
    verified_threshold: int = 85
    flagged_threshold: int = 70


@dataclass
class StorageConfig:
    """Persistence backend configuration."""
    backend: str
    records_dir: str
    documents_dir: str
    bucket: str = ""


@dataclass
class UploadLimitsConfig:
    """Submission upload limits."""
    max_file_size_mb: int = 10
    max_total_mb: int = 50
    max_files_per_type: int = 10


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    format: str
    file: str


@dataclass
class Config:
    """Main configuration class."""
    aws_region: str
    bedrock: BedrockConfig
    rules: RulesConfig
    storage: StorageConfig
    logging: LoggingConfig
    uploads: UploadLimitsConfig = field(default_factory=UploadLimitsConfig)

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - AWS_REGION
        - BEDROCK_MODEL_ID
        - STORAGE_BACKEND
        - S3_BUCKET
        - LOG_LEVEL
        - MAX_FILE_SIZE_MB, MAX_TOTAL_MB, MAX_FILES_PER_TYPE

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings
        """
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: dict) -> "Config":
        """Build a Config from an already-parsed YAML mapping."""
        aws_region = os.getenv("AWS_REGION", config_data["aws"]["region"])

        bedrock_config = BedrockConfig(
            model_id=os.getenv("BEDROCK_MODEL_ID", config_data["aws"]["bedrock"]["model_id"]),
            timeout=config_data["aws"]["bedrock"]["timeout"],
            max_retries=config_data["aws"]["bedrock"]["max_retries"],
            retry_base_delay=float(config_data["aws"]["bedrock"].get("retry_base_delay", 1.0))
        )

        # Unknown keys are ignored so older config files keep loading
        rules_data = config_data.get("rules", {}) or {}
        known_rules = RulesConfig.__dataclass_fields__.keys()
        rules_config = RulesConfig(
            **{key: value for key, value in rules_data.items() if key in known_rules}
        )

        storage_data = config_data["storage"]
        storage_config = StorageConfig(
            backend=os.getenv("STORAGE_BACKEND", storage_data.get("backend", "local")),
            records_dir=storage_data["records_dir"],
            documents_dir=storage_data["documents_dir"],
            bucket=os.getenv("S3_BUCKET", storage_data.get("bucket", "") or "")
        )

        uploads_data = config_data.get("uploads", {}) or {}
        uploads_config = UploadLimitsConfig(
            max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", uploads_data.get("max_file_size_mb", 10))),
            max_total_mb=int(os.getenv("MAX_TOTAL_MB", uploads_data.get("max_total_mb", 50))),
            max_files_per_type=int(os.getenv("MAX_FILES_PER_TYPE", uploads_data.get("max_files_per_type", 10)))
        )

        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", config_data["logging"]["level"]),
            format=config_data["logging"]["format"],
            file=config_data["logging"]["file"]
        )

        return cls(
            aws_region=aws_region,
            bedrock=bedrock_config,
            rules=rules_config,
            storage=storage_config,
            logging=logging_config,
            uploads=uploads_config,
        )
