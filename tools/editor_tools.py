"""
File viewing and editing tool (Anthropic `str_replace_editor`).

Commands: view, create, str_replace, insert, undo_edit.
Every mutation first pushes the file's previous text onto a per-path
undo stack owned by the tool instance.
"""

from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

from core.constants import SNIPPET_LINES
from core.errors import ToolError
from core.tool_base import (
    BaseTool,
    CLIResult,
    ToolResult,
    ToolSpec,
    array_param,
    int_param,
    make_schema,
    maybe_truncate,
    string_param,
)

COMMANDS = ["view", "create", "str_replace", "insert", "undo_edit"]

EDITOR_SPEC = ToolSpec(
    name="str_replace_editor",
    description=(
        "View, create and edit plain-text files. `view` on a directory lists it two levels deep. "
        "`str_replace` requires `old_str` to match exactly one place in the file. "
        "`undo_edit` reverts the last edit of a file."
    ),
    input_schema=make_schema(
        properties={
            "command": string_param("The command to run", enum=COMMANDS),
            "path": string_param("Absolute path to a file or directory"),
            "file_text": string_param("Content of the file to create (create)"),
            "view_range": array_param("[start, end] line numbers, end may be -1 (view)", item_type="integer"),
            "old_str": string_param("Exact text to replace (str_replace)"),
            "new_str": string_param("Replacement text (str_replace) or text to insert (insert)"),
            "insert_line": int_param("Insert new_str after this line, 0 for the top (insert)", minimum=0),
        },
        required=["command", "path"]
    ),
    api_type="text_editor_20241022",
)


class EditTool(BaseTool):
    """
    Filesystem editor for the model.

    Paths must be absolute. The undo history lives in memory only and is
    never shared between instances.
    """

    def __init__(self):
        self._file_history: Dict[Path, List[str]] = defaultdict(list)

    def describe(self) -> ToolSpec:
        return EDITOR_SPEC

    def execute(
        self,
        command: Optional[str] = None,
        path: Optional[str] = None,
        file_text: Optional[str] = None,
        view_range: Optional[List[int]] = None,
        old_str: Optional[str] = None,
        new_str: Optional[str] = None,
        insert_line: Optional[int] = None,
        **kwargs
    ) -> ToolResult:
        if not command:
            raise ToolError("Parameter `command` is required")
        if not path:
            raise ToolError("Parameter `path` is required")

        file_path = Path(path)
        self.validate_path(command, file_path)

        if command == "view":
            return self.view(file_path, view_range)

        if command == "create":
            if file_text is None:
                raise ToolError("Parameter `file_text` is required for command: create")
            self.write_file(file_path, file_text)
            self._file_history[file_path].append(file_text)
            return CLIResult(output=f"File created successfully at: {file_path}")

        if command == "str_replace":
            if not old_str:
                raise ToolError("Parameter `old_str` is required for command: str_replace")
            return self.str_replace(file_path, old_str, new_str or "")

        if command == "insert":
            if insert_line is None:
                raise ToolError("Parameter `insert_line` is required for command: insert")
            if not new_str:
                raise ToolError("Parameter `new_str` is required for command: insert")
            return self.insert(file_path, insert_line, new_str)

        if command == "undo_edit":
            return self.undo_edit(file_path)

        raise ToolError(
            f"Unrecognized command {command}. The allowed commands for the {EDITOR_SPEC.name} "
            f"tool are: {', '.join(COMMANDS)}"
        )

    # --- VALIDATION ---

    def validate_path(self, command: str, path: Path) -> None:
        """Check that the path suits the command."""
        if not path.is_absolute():
            suggested_path = Path("/") / path
            raise ToolError(
                f"The path {path} is not an absolute path, it should start with `/`. "
                f"Maybe you meant {suggested_path}?"
            )

        if not path.exists() and command != "create":
            raise ToolError(f"The path {path} does not exist. Please provide a valid path.")

        if path.exists() and command == "create":
            raise ToolError(
                f"File already exists at: {path}. Cannot overwrite files using command `create`."
            )

        if path.is_dir() and command != "view":
            raise ToolError(
                f"The path {path} is a directory and only the `view` command can be used on directories"
            )

    # --- COMMANDS ---

    def view(self, path: Path, view_range: Optional[List[int]] = None) -> ToolResult:
        """Show a file with line numbers, or list a directory two levels deep."""
        if path.is_dir():
            if view_range:
                raise ToolError(
                    "The `view_range` parameter is not allowed when `path` points to a directory."
                )
            entries = self._list_directory(path, max_depth=2)
            listing = "\n".join(entries)
            return CLIResult(
                output=f"Here's the files and directories up to 2 levels deep in {path}, "
                       f"excluding hidden items:\n{listing}\n"
            )

        content = self.read_file(path)
        init_line = 1

        if view_range:
            if len(view_range) != 2 or not all(isinstance(i, int) for i in view_range):
                raise ToolError("Invalid `view_range`. It should be a list of two integers.")

            file_lines = content.split("\n")
            n_lines_file = len(file_lines)
            start, end = view_range

            if start < 1 or start > n_lines_file:
                raise ToolError(
                    f"Invalid `view_range`: {view_range}. Its first element `{start}` should be "
                    f"within the range of lines of the file: [1, {n_lines_file}]"
                )
            if end != -1 and end > n_lines_file:
                raise ToolError(
                    f"Invalid `view_range`: {view_range}. Its second element `{end}` should be "
                    f"smaller than the number of lines in the file: `{n_lines_file}`"
                )
            if end != -1 and end < start:
                raise ToolError(
                    f"Invalid `view_range`: {view_range}. Its second element `{end}` should be "
                    f"larger or equal than its first `{start}`"
                )

            selected = file_lines[start - 1:] if end == -1 else file_lines[start - 1:end]
            content = "\n".join(selected)
            init_line = start

        return CLIResult(output=self._make_output(content, str(path), init_line=init_line))

    def str_replace(self, path: Path, old_str: str, new_str: str) -> ToolResult:
        """Replace the single occurrence of old_str with new_str."""
        content = self.read_file(path)

        occurrences = content.count(old_str)
        if occurrences == 0:
            raise ToolError(
                f"No replacement was performed, old_str `{old_str}` did not appear verbatim in {path}."
            )
        if occurrences > 1:
            lines = [idx + 1 for idx, line in enumerate(content.split("\n")) if old_str in line]
            raise ToolError(
                f"No replacement was performed. Multiple occurrences of old_str `{old_str}` "
                f"in lines {lines}. Please ensure it is unique"
            )

        new_content = content.replace(old_str, new_str)
        self.write_file(path, new_content)
        self._file_history[path].append(content)

        replacement_line = content.split(old_str)[0].count("\n")
        start_line = max(0, replacement_line - SNIPPET_LINES)
        end_line = replacement_line + SNIPPET_LINES + new_str.count("\n")
        snippet = "\n".join(new_content.split("\n")[start_line:end_line + 1])

        return CLIResult(output=(
            f"The file {path} has been edited. "
            + self._make_output(snippet, f"a snippet of {path}", start_line + 1)
            + "Review the changes and make sure they are as expected. Edit the file again if necessary."
        ))

    def insert(self, path: Path, insert_line: int, new_str: str) -> ToolResult:
        """Insert new_str after line `insert_line` (0 inserts at the top)."""
        content = self.read_file(path)
        file_lines = content.split("\n")
        n_lines_file = len(file_lines)

        if insert_line < 0 or insert_line > n_lines_file:
            raise ToolError(
                f"Invalid `insert_line` parameter: {insert_line}. It should be within the range "
                f"of lines of the file: [0, {n_lines_file}]"
            )

        new_str_lines = new_str.split("\n")
        new_file_lines = file_lines[:insert_line] + new_str_lines + file_lines[insert_line:]
        snippet_lines = (
            file_lines[max(0, insert_line - SNIPPET_LINES):insert_line]
            + new_str_lines
            + file_lines[insert_line:insert_line + SNIPPET_LINES]
        )

        self.write_file(path, "\n".join(new_file_lines))
        self._file_history[path].append(content)

        return CLIResult(output=(
            f"The file {path} has been edited. "
            + self._make_output(
                "\n".join(snippet_lines),
                "a snippet of the edited file",
                max(1, insert_line - SNIPPET_LINES + 1),
            )
            + "Review the changes and make sure they are as expected (correct indentation, "
              "no duplicate lines, etc). Edit the file again if necessary."
        ))

    def undo_edit(self, path: Path) -> ToolResult:
        """Restore the text the file had before its last edit."""
        history = self._file_history.get(path)
        if not history:
            raise ToolError(f"No edit history found for {path}.")

        old_text = history.pop()
        self.write_file(path, old_text)
        return CLIResult(
            output=f"Last edit to {path} undone successfully. {self._make_output(old_text, str(path))}"
        )

    # --- FILE I/O ---

    def read_file(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ToolError(f"Ran into {e} while trying to read {path}") from None

    def write_file(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ToolError(f"Ran into {e} while trying to write to {path}") from None

    # --- OUTPUT ---

    def _make_output(self, content: str, file_descriptor: str, init_line: int = 1, expand_tabs: bool = True) -> str:
        """Format content like `cat -n`."""
        content = maybe_truncate(content)
        if expand_tabs:
            content = content.expandtabs()
        numbered = "\n".join(
            f"{i + init_line:6}\t{line}" for i, line in enumerate(content.split("\n"))
        )
        return f"Here's the result of running `cat -n` on {file_descriptor}:\n{numbered}\n"

    def _list_directory(self, root: Path, max_depth: int) -> List[str]:
        """Non-hidden entries under root, at most max_depth levels deep, sorted."""
        entries: List[str] = []

        def walk(directory: Path, depth: int) -> None:
            if depth >= max_depth:
                return
            for entry in directory.iterdir():
                if entry.name.startswith("."):
                    continue
                if entry.is_dir():
                    entries.append(f"{entry}/")
                    walk(entry, depth + 1)
                else:
                    entries.append(str(entry))

        walk(root, 0)
        return sorted(entries)
