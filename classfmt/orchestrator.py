import os
import time
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from classfmt.options import NEWLINES, ReorganizeOptions
from classfmt.parsing import parse_source
from classfmt.pipeline import reorganize
from classfmt.utils import get_logger, load_config, read_source, write_source

logger = get_logger(__name__)


def _apply_overrides(options: ReorganizeOptions, overrides: Optional[Dict[str, Any]]) -> ReorganizeOptions:
    if not overrides:
        return options
    if overrides.get("reset_groups") is not None:
        options = replace(options, reset_groups_on_non_field=bool(overrides["reset_groups"]))
    if overrides.get("spacing") is not None:
        options = replace(options, spacing_enabled=bool(overrides["spacing"]))
    if overrides.get("newline") is not None:
        nl = overrides["newline"]
        if nl not in NEWLINES:
            raise ValueError(f"Unknown newline mode: {nl}")
        options = replace(options, newline=NEWLINES[nl])
    return options


def reorganize_source(text: str, options: Optional[ReorganizeOptions] = None) -> str:
    """Reorganize every class body in ``text`` and return the new source."""
    options = (options or ReorganizeOptions()).resolve_newline(text)
    source = parse_source(text)
    if not source.types:
        return text
    replacements = {idx: reorganize(body.members, options) for idx, body in enumerate(source.types)}
    return source.render(replacements)


def _process_file(path: str, options: ReorganizeOptions, check: bool) -> bool:
    if not os.path.isfile(path):
        logger.error("file not found: %s", path)
        raise FileNotFoundError(path)

    t0 = time.monotonic()
    text, has_bom = read_source(path)
    try:
        new_text = reorganize_source(text, options)
    except ValueError as e:
        logger.error("reorganize failed path=%s: %s", path, e)
        raise
    changed = new_text != text
    if changed and not check:
        write_source(path, new_text, has_bom)
    logger.info(
        "%s path=%s took_ms=%d",
        ("would reformat" if check else "reformatted") if changed else "unchanged",
        path,
        int((time.monotonic() - t0) * 1000),
    )
    return changed


def run_once(
    paths: Sequence[str],
    *,
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
    check: bool = False,
) -> List[str]:
    """Reorganize the given files once; returns the paths that changed."""
    run_id = uuid.uuid4().hex[:8]
    logger.info("=== run start id=%s ===", run_id)

    try:
        cfg = load_config(config_path)
        options = _apply_overrides(ReorganizeOptions.from_config(cfg), overrides)
        logger.info(
            "config loaded path=%s reset_groups=%s spacing=%s newline=%r",
            config_path,
            options.reset_groups_on_non_field,
            options.spacing_enabled,
            options.newline,
        )
        changed = [p for p in paths if _process_file(p, options, check)]
        logger.info("files=%d changed=%d check=%s", len(paths), len(changed), check)
        return changed

    except Exception as e:
        logger.error("Run failed: %s", e)
        raise
    finally:
        logger.info("=== run end id=%s ===", run_id)
