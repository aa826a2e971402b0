from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Storage
    storage_backend: str = "local"  # "local", "http" or "s3"
    assets_path: str = "./public"

    # Blob HTTP service (optional)
    blobs_url: str = ""

    # S3 (optional)
    s3_bucket_name: str = ""
    s3_prefix: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"

    # Listing
    max_list_keys: int = 1000
    walk_concurrency: int = 1  # >1 fetches sibling directories concurrently
    build_manifest: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_to_file: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
