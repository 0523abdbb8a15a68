"""
Configuration Management

시스템 설정 관리
"""

import os
import yaml
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List
from pathlib import Path
import logging


def _env_list(name: str) -> List[str]:
    """쉼표로 구분된 환경 변수를 리스트로 변환"""
    value = os.getenv(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class ModelConfig:
    """대상 모델 설정"""
    model: str = "gpt-4o"
    max_model_tokens: int = 32000  # 알 수 없는 모델의 컨텍스트 크기
    output_buffer_tokens: int = 1500  # 모델 응답을 위해 비워둘 토큰


@dataclass
class PatchConfig:
    """패치 처리 설정"""
    patch_extra_lines_before: int = 5
    patch_extra_lines_after: int = 1
    add_line_numbers: bool = True
    max_number_of_calls: int = 3  # 큰 PR을 나눌 최대 배치 수


@dataclass
class IgnoreConfig:
    """파일 제외 설정"""
    glob: List[str] = field(default_factory=list)
    regex: List[str] = field(default_factory=list)
    allowed_extensions: List[str] = field(default_factory=list)


@dataclass
class GitHubConfig:
    """GitHub API 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    fetch_file_content: bool = True


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    model: ModelConfig = field(default_factory=ModelConfig)
    patch: PatchConfig = field(default_factory=PatchConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            model=ModelConfig(
                model=os.getenv("PR_MODEL", "gpt-4o"),
                max_model_tokens=int(os.getenv("MAX_MODEL_TOKENS", "32000")),
                output_buffer_tokens=int(os.getenv("OUTPUT_BUFFER_TOKENS", "1500")),
            ),
            patch=PatchConfig(
                patch_extra_lines_before=int(os.getenv("PATCH_EXTRA_LINES_BEFORE", "5")),
                patch_extra_lines_after=int(os.getenv("PATCH_EXTRA_LINES_AFTER", "1")),
                add_line_numbers=os.getenv("ADD_LINE_NUMBERS", "true").lower() == "true",
                max_number_of_calls=int(os.getenv("MAX_NUMBER_OF_CALLS", "3")),
            ),
            ignore=IgnoreConfig(
                glob=_env_list("IGNORE_GLOB"),
                regex=_env_list("IGNORE_REGEX"),
                allowed_extensions=_env_list("ALLOWED_EXTENSIONS"),
            ),
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
                fetch_file_content=os.getenv("FETCH_FILE_CONTENT", "true").lower() == "true",
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "AppConfig":
        """딕셔너리에서 설정 로드"""
        return cls(
            model=ModelConfig(**config_data.get('model', {})),
            patch=PatchConfig(**config_data.get('patch', {})),
            ignore=IgnoreConfig(**config_data.get('ignore', {})),
            github=GitHubConfig(**config_data.get('github', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
            debug=config_data.get('debug', False),
        )

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        # 컨텍스트 라인 수 검증
        if self.patch.patch_extra_lines_before < 0 or self.patch.patch_extra_lines_after < 0:
            errors.append("Extra context lines must be non-negative")

        if self.patch.max_number_of_calls < 1:
            errors.append("max_number_of_calls must be at least 1")

        # 토큰 설정 검증
        if self.model.max_model_tokens <= 0:
            errors.append("max_model_tokens must be positive")

        if self.model.output_buffer_tokens < 0:
            errors.append("output_buffer_tokens must be non-negative")
        elif self.model.output_buffer_tokens >= self.model.max_model_tokens:
            errors.append("output_buffer_tokens must be smaller than max_model_tokens")

        if not self.model.model.strip():
            errors.append("Model identifier is required")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        data = asdict(self)
        # 보안상 토큰은 제외
        data['github'].pop('token', None)
        return data


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def update_config(self, **kwargs) -> None:
        """설정 업데이트"""
        config_dict = asdict(self._config)

        for key, value in kwargs.items():
            if '.' in key:
                # 중첩된 설정 (예: 'patch.patch_extra_lines_before')
                section, name = key.split('.', 1)
                if section in config_dict:
                    config_dict[section][name] = value
            else:
                # 최상위 설정
                config_dict[key] = value

        new_config = AppConfig.from_dict(config_dict)
        new_config.validate()
        self._config = new_config
        self._setup_logging()

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            # 루트 로거에 핸들러 추가
            root_logger = logging.getLogger()
            root_logger.addHandler(handler)


# 전역 설정 관리자 인스턴스 (최초 사용 시 생성)
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """전역 설정 관리자 반환"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> AppConfig:
    """현재 설정 반환"""
    return get_config_manager().config
