"""Application configuration module."""

from pathlib import Path
from pydantic_settings import BaseSettings

# 計算專案根目錄的絕對路徑（相對於此文件的位置）
_THIS_DIR = Path(__file__).parent  # backend/ffe_budget/
_BACKEND_ROOT = _THIS_DIR.parent  # backend/
_PROJECT_ROOT = _BACKEND_ROOT.parent  # repo root
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    # Backend Configuration
    backend_host: str = "localhost"
    backend_port: int = 8000
    backend_debug: bool = False

    # Document storage - 使用絕對路徑以避免從不同目錄啟動時的路徑問題
    documents_dir: str = str(_BACKEND_ROOT / "documents")
    recovery_dir: str = str(_BACKEND_ROOT / "recovery")
    file_extension: str = ".ffe"
    max_file_size_mb: int = 50
    max_attachment_size_mb: int = 10

    # Auto-save
    autosave_delay_seconds: float = 1.0
    autosave_slot: str = "ffe_autosave"

    # New document template
    default_project_name: str = "Project Name"
    default_project_address: str = "project address goes here, city, state, zip code"
    default_client: str = "Development Group LLC"
    default_allowance: float = 750000
    default_sales_tax_rate: float = 10.25

    # Company branding
    company_name: str = "Pat Ryan Things LLC."
    company_address: str = "1521 Syracuse St, Denver, CO 80220"
    company_phone: str = "303 434 4595"
    company_email: str = "pat@patryan.com"
    company_website: str = "www.patryan.com"
    company_logo_url: str = ""

    # Logging
    log_level: str = "INFO"

    # Computed paths
    @property
    def documents_dir_path(self) -> Path:
        """Get documents directory path as Path object (always absolute)."""
        path = Path(self.documents_dir)
        # 如果是相對路徑，基於專案根目錄解析
        if not path.is_absolute():
            path = _PROJECT_ROOT / path
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def recovery_dir_path(self) -> Path:
        """Get recovery snapshot directory path as Path object (always absolute)."""
        path = Path(self.recovery_dir)
        if not path.is_absolute():
            path = _PROJECT_ROOT / path
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def max_file_size_bytes(self) -> int:
        """Get max document file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def max_attachment_size_bytes(self) -> int:
        """Get max attachment size in bytes."""
        return self.max_attachment_size_mb * 1024 * 1024

    model_config = {
        "env_file": str(_ENV_FILE),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
