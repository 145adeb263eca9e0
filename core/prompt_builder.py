"""
System prompt builder for the computer-use agent.

The prompt describes the machine the tools act on (OS, architecture,
date) and how to use the tools well. It is rebuilt for every run so the
date stays current; a caller-supplied suffix is appended verbatim.
"""

import platform
from datetime import datetime
from typing import Optional


def _describe_platform() -> str:
    """Short OS/architecture description, e.g. 'Linux virtual machine using x86_64'."""
    system = platform.system() or "unknown"
    machine = platform.machine() or "unknown"
    return f"{system} virtual machine using {machine} architecture"


def build_base_prompt(now: Optional[datetime] = None) -> str:
    """
    Environment-derived part of the system prompt.

    Args:
        now: Date to report (defaults to today)

    Returns:
        The system capability and guidance text
    """
    now = now or datetime.now()
    today = now.strftime("%A, %B %d, %Y").replace(" 0", " ")

    return f"""<SYSTEM_CAPABILITY>
* You are utilising a {_describe_platform()} with internet access.
* You can feel free to install applications with your bash tool. Use curl instead of wget.
* Using bash tool you can start GUI applications, but you need to set export DISPLAY=:1 and use a subshell. For example "(DISPLAY=:1 xterm &)". GUI apps run with bash tool will appear within your desktop environment, but they may take some time to appear. Take a screenshot to confirm it did.
* When using your bash tool with commands that are expected to output very large quantities of text, redirect into a tmp file and use str_replace_editor or `grep -n -B <lines before> -A <lines after> <query> <filename>` to confirm output.
* When viewing a page it can be helpful to zoom out so that you can see everything on the page. Either that, or make sure you scroll down to see everything before deciding something isn't available.
* When using your computer function calls, they take a while to run and send back to you. Where possible/feasible, try to chain multiple of these calls all into one function calls request.
* The current date is {today}.
</SYSTEM_CAPABILITY>

<IMPORTANT>
* When using a browser, if a startup wizard appears, IGNORE IT. Do not even click "skip this step". Instead, click on the address bar and enter the appropriate search term or URL there.
* If the item you are looking at is a pdf, if after taking a single screenshot of the pdf it seems that you want to read the entire document instead of trying to continue to read the pdf from your screenshots + navigation, determine the URL, use curl to download the pdf, install and use pdftotext to convert it to a text file, and then read that text file directly with your str_replace_editor tool.
</IMPORTANT>"""


def build_system_prompt(suffix: str = "", now: Optional[datetime] = None) -> str:
    """
    Full system prompt: the base prompt plus the caller's suffix.

    Args:
        suffix: Extra instructions from the caller, appended after a space
        now: Date to report (defaults to today)
    """
    base = build_base_prompt(now)
    if suffix:
        return f"{base} {suffix}"
    return base
