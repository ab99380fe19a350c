import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def _short(value: str, limit: int = 80) -> str:
    text = str(value)
    return text if len(text) <= limit else text[:limit] + '...'


class ConfigMerger:
    @staticmethod
    def merge(
        base: Mapping[str, str],
        override: Mapping[str, str],
        context_description: str = "ConfigMerge",
        allowed: Optional[Iterable[str]] = None,
    ) -> Dict[str, str]:
        """
        Merges a flat 'override' mapping into a 'base' mapping.
        - Values in override replace values in base.
        - If allowed is given, override keys outside it are dropped, never merged:
          a layer cannot introduce variables its domain does not declare.
        """
        allowed_set = set(allowed) if allowed is not None else None
        merged = dict(base)
        logger.debug(
            f"[{context_description}] Starting merge. Base keys: {list(base.keys())}, Override keys: {list(override.keys())}"
        )

        for key, override_value in override.items():
            if allowed_set is not None and key not in allowed_set:
                logger.debug(f"[{context_description}] Dropped undeclared key '{key}'.")
                continue
            if key not in merged:
                merged[key] = override_value
                logger.debug(f"[{context_description}] Added new key '{key}' with value: {_short(override_value)}")
            elif merged[key] == override_value:
                logger.debug(f"[{context_description}] Key '{key}' has same value in base and override. No change.")
            else:
                logger.debug(
                    f"[{context_description}] Overridden key '{key}'. Old: {_short(merged[key])}, New: {_short(override_value)}"
                )
                merged[key] = override_value

        logger.debug(f"[{context_description}] Merge complete. Result keys: {list(merged.keys())}")
        return merged


def merge_layers(
    *layers: Tuple[str, Mapping[str, str], Optional[Iterable[str]]],
    context: str = "ConfigChain",
) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Merges (label, values, allowed) layers in order; later layers win.
    Returns the merged values and, per key, the label of the layer that supplied it.
    """
    result: Dict[str, str] = {}
    origins: Dict[str, str] = {}
    for i, (label, values, allowed) in enumerate(layers):
        allowed_set = set(allowed) if allowed is not None else None
        result = ConfigMerger.merge(result, values, context_description=f"{context}_Step{i + 1}:{label}", allowed=allowed_set)
        for key in values:
            if allowed_set is None or key in allowed_set:
                origins[key] = label
    return result, origins
