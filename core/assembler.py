"""
Turns a ToolResult into the tool_result block sent back to the model.
"""

from core.context import ImageBlock, TextBlock, ToolResultBlock
from core.tool_base import ToolResult

DEFAULT_IMAGE_MEDIA_TYPE = "image/png"


def maybe_prepend_system_tool_result(result: ToolResult, text: str) -> str:
    """Put the tool's system note in front of `text`, wrapped in <system> tags."""
    if result.system:
        return f"<system>{result.system}</system>\n{text}"
    return text


def make_api_tool_result(result: ToolResult, tool_use_id: str) -> ToolResultBlock:
    """
    Build the ToolResultBlock answering the tool_use block `tool_use_id`.

    An error result carries only the error text. Otherwise the output text
    comes first and the screenshot second; either may be missing, and an
    empty result gives an empty (still valid) content list.
    """
    content = []
    is_error = False

    if result.error:
        is_error = True
        content.append(TextBlock(text=maybe_prepend_system_tool_result(result, result.error)))
    else:
        if result.output:
            content.append(TextBlock(text=maybe_prepend_system_tool_result(result, result.output)))
        if result.base64_image:
            content.append(ImageBlock(
                data=result.base64_image,
                media_type=result.media_type or DEFAULT_IMAGE_MEDIA_TYPE,
            ))

    return ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error)
