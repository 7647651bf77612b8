"""Quality-level search through ``ab-av1 crf-search``."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from av1kit.models.result import parse_quality_score
from av1kit.models.types import Operation

from .builder import CommandBuilder
from .builder import command_args as ca

if TYPE_CHECKING:
    from av1kit.models.config import EncoderConfig

    from .abav1 import AbAV1Backend

logger = logging.getLogger(__name__)

# Tried in order; ab-av1 has printed its result in each of these shapes.
_RESULT_PATTERNS = (
    re.compile(r"Suggested CRF:\s*(\d+)", re.IGNORECASE),
    re.compile(r"crf\s+(\d+)", re.IGNORECASE),
    re.compile(r"CRF=(\d+)", re.IGNORECASE),
)
_NUMBER = re.compile(r"\b(\d+)\b")
PLAUSIBLE_RANGE = range(15, 51)


def parse_quality_level(output: str, default: int) -> int:
    """Return the quality level recommended in ``output``.

    Falls back to the last number in :data:`PLAUSIBLE_RANGE`, then to
    ``default``.
    """
    for pattern in _RESULT_PATTERNS:
        match = pattern.search(output)
        if match:
            return int(match.group(1))
    for token in reversed(_NUMBER.findall(output)):
        if int(token) in PLAUSIBLE_RANGE:
            return int(token)
    return default


def search_builder(builder: CommandBuilder, input_path: str, output_path: str, config: EncoderConfig) -> CommandBuilder:
    """Return a ``crf-search`` builder derived from an encode builder."""
    target = builder.min_quality_target
    return (
        CommandBuilder()
        .set_operation(Operation.CRF_SEARCH)
        .set_input(input_path)
        .set_output(output_path)
        .set_preset(builder.preset or config.default_preset)
        .set_min_quality_target(config.default_min_quality_target if target is None else target)
        .set_min_crf(builder.option(ca.MIN_CRF, config.min_crf))  # type: ignore[arg-type]
        .set_max_crf(builder.option(ca.MAX_CRF, config.max_crf))  # type: ignore[arg-type]
    )


def search_quality_level(
    backend: AbAV1Backend,
    builder: CommandBuilder,
    input_path: str,
    output_path: str,
    config: EncoderConfig,
) -> int:
    """Search the quality level meeting the builder's minimum quality target.

    A failed search or unreadable output yields
    ``config.default_quality_level``; this function does not raise for
    either.
    """
    search = search_builder(builder, input_path, output_path, config)
    logger.info("Searching quality level for %s", input_path)
    try:
        result = backend.execute(search)
    except OSError as e:
        logger.warning("Quality search could not start: %s", e)
        return config.default_quality_level
    if not result.successful:
        logger.warning(
            "Quality search failed (%s), using default %s: %s",
            result.exit_code,
            config.default_quality_level,
            result.stderr.strip(),
        )
        return config.default_quality_level
    level = parse_quality_level(result.stdout, config.default_quality_level)
    logger.info("Quality search selected %s", level)
    return level


__all__ = [
    "PLAUSIBLE_RANGE",
    "parse_quality_level",
    "parse_quality_score",
    "search_builder",
    "search_quality_level",
]
