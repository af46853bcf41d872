"""Load TransformerConfig from YAML.

Expected layout::

    base_url: https://example.atlassian.net
    fields:
      customfield_10020: Sprint
      customfield_10016: Story point estimate
    statuses:
      - {name: Open, category: To Do}
      - {name: In Progress, category: In Progress}
    additional_fields: [customfield_10050]
    additional_fields_array_limit: 50
"""

from __future__ import annotations

from pathlib import Path

import yaml

from .config import TransformerConfig

DEFAULT_CONFIG_NAME = "transformer.yaml"


class ConfigError(ValueError):
    """Raised when a transformer configuration file cannot be used."""


def _status_pairs(entries, path: Path) -> list[tuple[str, str]]:
    if not isinstance(entries, list):
        raise ConfigError(f"{path}: 'statuses' must be a list")
    pairs = []
    for entry in entries:
        if not isinstance(entry, dict) or "name" not in entry or "category" not in entry:
            raise ConfigError(f"{path}: status entries need 'name' and 'category': {entry!r}")
        pairs.append((str(entry["name"]), str(entry["category"])))
    return pairs


def load_transformer_config(path: str | Path | None = None) -> TransformerConfig:
    """Read ``path`` (default ``transformer.yaml`` in the working directory).

    A missing file yields an empty configuration. A file that is not valid
    YAML or does not follow the layout above raises ``ConfigError``.
    """
    yaml_path = Path(path or DEFAULT_CONFIG_NAME)
    if not yaml_path.exists():
        return TransformerConfig.build()
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{yaml_path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{yaml_path}: top level must be a mapping")

    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        raise ConfigError(f"{yaml_path}: 'fields' must map field ids to names")
    additional = data.get("additional_fields") or []
    if not isinstance(additional, list):
        raise ConfigError(f"{yaml_path}: 'additional_fields' must be a list")
    limit = data.get("additional_fields_array_limit")
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
        raise ConfigError(f"{yaml_path}: 'additional_fields_array_limit' must be a non-negative integer")

    return TransformerConfig.build(
        field_name_by_id={str(k): str(v) for k, v in fields.items()},
        statuses=_status_pairs(data.get("statuses") or [], yaml_path),
        additional_field_ids=[str(f) for f in additional],
        additional_fields_array_limit=limit,
        base_url=data.get("base_url"),
    )
