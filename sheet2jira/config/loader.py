from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import FieldMapping, JiraConfig, SyncConfig, TableConfig

"""Config loader.

Responsibilities:
- Load the YAML sync config (default config/sync.yml)
- Validate it against config_schema.json
- Apply defaults and environment overrides for the Jira credentials
- Build the immutable SyncConfig handed to every component
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/sync.yml")

# 環境変数が YAML の値より優先される
ENV_OVERRIDES = {
    "domain": "JIRA_DOMAIN",
    "email": "JIRA_EMAIL",
    "api_token": "JIRA_API_TOKEN",
}

DEFAULT_ISSUE_TYPE = "Task"
DEFAULT_LABEL = "sheet-automation"
DEFAULT_SUMMARY = "Ticket from spreadsheet"
DEFAULT_PRIORITY = "Major"
DEFAULT_DESCRIPTION = "This ticket was created by the spreadsheet automation."
DEFAULT_KEY_COLUMN = "Jira Key"
DEFAULT_ERROR_COLUMN = "Script Errors"
DEFAULT_ROW_LINK_TEMPLATE = "{workbook_uri}#'{sheet}'!A{row}"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails schema validation (missing required keys, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_jira_config(raw: dict[str, Any], env: Mapping[str, str]) -> JiraConfig:
    values = dict(raw)
    for key, env_name in ENV_OVERRIDES.items():
        if env.get(env_name):
            values[key] = env[env_name]
    domain = str(values.get("domain") or "").strip().rstrip("/")
    if not domain:
        raise ConfigError("config validation failed: jira.domain is required (or set JIRA_DOMAIN)")
    return JiraConfig(
        domain=domain,
        email=str(values.get("email") or "").strip(),
        api_token=str(values.get("api_token") or "").strip(),
        project_key=values["project_key"],
        issue_type=values.get("issue_type", DEFAULT_ISSUE_TYPE),
        reporter_id=values["reporter_id"],
        assignee_id=values["assignee_id"],
        default_label=values.get("default_label", DEFAULT_LABEL),
        default_summary=values.get("default_summary", DEFAULT_SUMMARY),
        default_priority=values.get("default_priority", DEFAULT_PRIORITY),
        fallback_description=values.get("fallback_description", DEFAULT_DESCRIPTION),
    )


def _build_table_config(raw: dict[str, Any], base_dir: Path) -> TableConfig:
    workbook = Path(raw["workbook"])
    if not workbook.is_absolute():
        # 相対パスは設定ファイルではなくカレントディレクトリ基準
        workbook = base_dir / workbook
    key_column = raw.get("key_column", DEFAULT_KEY_COLUMN)
    error_column = raw.get("error_column", DEFAULT_ERROR_COLUMN)
    if key_column == error_column:
        raise ConfigError("config validation failed: key_column and error_column must differ")
    template = raw.get("row_link_template", DEFAULT_ROW_LINK_TEMPLATE)
    try:
        template.format(workbook_uri="file:///book.xlsx", workbook="book.xlsx", sheet="Sheet1", row=1)
    except (KeyError, ValueError, IndexError) as e:
        raise ConfigError(
            f"config validation failed: invalid row_link_template {template!r}: "
            "placeholders are {workbook_uri}, {workbook}, {sheet}, {row}"
        ) from e
    return TableConfig(
        workbook=str(workbook),
        sheet=raw["sheet"],
        start_row=raw.get("start_row", 1),
        start_column=raw.get("start_column", 1),
        key_column=key_column,
        error_column=error_column,
        row_link_template=template,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH, env: Mapping[str, str] | None = None) -> SyncConfig:
    if env is None:
        env = os.environ
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    jira = _build_jira_config(data["jira"], env)
    table = _build_table_config(data["table"], Path.cwd())

    mappings = tuple(
        FieldMapping(
            column=m["column"],
            field=m["field"],
            required=m.get("required", False),
            default=m.get("default"),
        )
        for m in data["field_mappings"]
    )
    seen: set[str] = set()
    for m in mappings:
        if m.column in seen:
            raise ConfigError(f"config validation failed: duplicate mapping for column '{m.column}'")
        seen.add(m.column)

    # key / error 列は常に description から除外する
    ignored = set(data.get("ignored_columns", []))
    ignored.update({table.key_column, table.error_column})

    return SyncConfig(
        jira=jira,
        table=table,
        field_mappings=mappings,
        ignored_columns=frozenset(ignored),
        log_dir=data.get("log_dir", "./logs"),
    )
