"""
Context window trimming.

Screenshots dominate the request size, so only the most recent ones are
kept in tool results. Images are dropped oldest first and in whole batches
of `min_removal_threshold`, which keeps the start of the conversation
stable between turns instead of changing it on every call.
"""

from typing import List

from loguru import logger

from core.constants import IMAGE_REMOVAL_BATCH
from core.context import ImageBlock, Message, iter_tool_results


def count_tool_result_images(messages: List[Message]) -> int:
    """Number of images carried by tool results across the conversation."""
    return sum(len(block.images()) for block in iter_tool_results(messages))


def filter_n_most_recent_images(
    messages: List[Message],
    images_to_keep: int,
    min_removal_threshold: int = IMAGE_REMOVAL_BATCH,
) -> int:
    """
    Drop the oldest tool result images in place.

    Args:
        messages: The conversation, modified in place
        images_to_keep: Number of most recent images that must survive
        min_removal_threshold: Images are removed in multiples of this

    Returns:
        Number of images removed
    """
    if min_removal_threshold < 1:
        raise ValueError("min_removal_threshold must be at least 1")

    tool_results = list(iter_tool_results(messages))
    total_images = sum(len(block.images()) for block in tool_results)

    images_to_remove = total_images - max(images_to_keep, 0)
    if images_to_remove <= 0:
        return 0
    images_to_remove -= images_to_remove % min_removal_threshold
    if images_to_remove <= 0:
        return 0

    removed = 0
    for block in tool_results:
        if removed == images_to_remove:
            break
        kept = []
        for item in block.content:
            if isinstance(item, ImageBlock) and removed < images_to_remove:
                removed += 1
                continue
            kept.append(item)
        block.content = kept

    logger.debug("Trimmed {} of {} screenshots from context", removed, total_images)
    return removed
