"""YAML config loading; environment variables override the file's settings."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from mailscrub.policy import DEFAULT_POLICY, DomainPolicy
from mailscrub.settings import Settings


class PolicyConfig(BaseModel):
    extra_skip_hosts: list[str] = []
    extra_preserve_hosts: list[str] = []

    def build(self) -> DomainPolicy:
        if not self.extra_skip_hosts and not self.extra_preserve_hosts:
            return DEFAULT_POLICY
        return DEFAULT_POLICY.extended(
            skip_hosts=self.extra_skip_hosts,
            preserve_hosts=self.extra_preserve_hosts,
        )


class AppConfig(BaseModel):
    policy: PolicyConfig = PolicyConfig()
    settings: Settings = Field(default_factory=Settings)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load config from YAML file; MAILSCRUB_* env vars and .env take precedence."""
    data: dict = {}
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}

    return AppConfig(
        policy=PolicyConfig(**(data.get("policy") or {})),
        settings=Settings(**(data.get("settings") or {})),
    )
