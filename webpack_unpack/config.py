"""Configuration management for webpack-unpack."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load .env from multiple locations
# 1. Current working directory
load_dotenv()
# 2. Home directory config
load_dotenv(Path.home() / ".config" / "webpack-unpack" / ".env")


class Config(BaseSettings):
    """Configuration for webpack-unpack."""

    # Node.js helpers
    node_binary: str = Field(default="node", description="Node.js executable used for parsing and generation")
    install_node_dependencies: bool = Field(
        default=True,
        description="Run npm install when the acorn, eslint-scope or astring helpers are missing",
    )
    ecma_version: int = Field(default=2019, description="ECMAScript version acorn parses bundles with")
    parse_timeout_seconds: int = Field(default=60, ge=1, description="Timeout for parsing a bundle")
    generate_timeout_seconds: int = Field(default=60, ge=1, description="Timeout for regenerating a module")
    analysis_timeout_seconds: int = Field(default=60, ge=1, description="Timeout for resolving factory parameter bindings")

    # Output Settings
    output_dir: Optional[Path] = Field(default=None, description="Directory to write recovered modules to")
    module_extension: str = Field(default=".js", description="File extension for written modules")
    json_indent: Optional[int] = Field(default=None, ge=0, description="Indentation of printed module JSON")

    model_config = {
        "env_prefix": "WEBPACK_UNPACK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("ecma_version")
    @classmethod
    def validate_ecma_version(cls, v: int) -> int:
        """Accept edition years from ES2015 on, or the edition numbers 6 and up."""
        if 6 <= v <= 14:
            return v + 2009
        if v < 2015:
            raise ValueError(f"ecma_version must be 2015 or later, got {v}")
        return v

    @field_validator("module_extension")
    @classmethod
    def validate_module_extension(cls, v: str) -> str:
        """Ensure the extension starts with a dot."""
        if v and not v.startswith("."):
            return f".{v}"
        return v
