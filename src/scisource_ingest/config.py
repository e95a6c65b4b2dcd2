from pathlib import Path

from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_STYLESHEET_DIR = Path(__file__).parent / "transform" / "stylesheets"


class Settings(BaseSettings):
    wikibase_url: AnyHttpUrl = "http://localhost:8181"
    wikibase_access_token: SecretStr = SecretStr("")
    wikibase_language: str = "en"

    europepmc_api_url: AnyHttpUrl = "https://www.ebi.ac.uk/europepmc/webservices/rest"
    http_timeout: float = 30.0

    output_dir: Path = Path(".")
    dictionaries_dir: Path = Path("dictionaries")
    stylesheet_dir: Path = PACKAGE_STYLESHEET_DIR

    # Kept small to be polite to EuropePMC and the Wikibase instance
    concurrency_limit: int = 5

    # Characters of context captured either side of a term
    phrase_target_size: int = 100

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SCISOURCE_",
        env_file=".env",
        extra="ignore"
    )

    @property
    def api_endpoint(self) -> str:
        return str(self.wikibase_url).rstrip("/") + "/w/api.php"

settings = Settings()
