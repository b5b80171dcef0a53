# dotinstall/src/dotinstall/core/config.py

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    install_root: Path = Field(default=Path("~/.install"))
    tag_dir_name: str = Field(default=".tags")
    upstream_dirname: str = Field(default="upstream")
    downstream_dirname: str = Field(default="downstream")
    log_file_name: str = Field(default=".log")
    # Hard cap on walker recursion, on top of the inode cycle guard
    max_depth: int = Field(default=64)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "DOTINSTALL_",
        "extra": "ignore"
    }

    @property
    def root(self) -> Path:
        return self.install_root.expanduser()

    @property
    def tag_dir(self) -> Path:
        return self.root / self.tag_dir_name

    @property
    def log_file(self) -> Path:
        return self.root / self.log_file_name


# Instantiate settings
settings = Settings()
