import re
from collections.abc import Iterable

from bytedocs.models import HandlerInfo, Parameter

_PARAM_PATTERN = re.compile(r'@Param\s+(\w+)\s+(\w+)\s+(\w+)\s+(true|false)\s+"([^"]*)"')


def clean_comment_lines(comments: Iterable[str]) -> list[str]:
    """Strip comment markers and drop blank lines.

    Block comments spanning several lines contribute one entry per non-blank
    line.
    """
    lines: list[str] = []
    for comment in comments:
        text = comment.strip()
        if text.startswith("//"):
            cleaned = text[2:].strip()
            if cleaned:
                lines.append(cleaned)
            continue
        for line in text.removeprefix("/*").removesuffix("*/").splitlines():
            cleaned = line.strip()
            if cleaned.startswith("* ") or cleaned == "*":
                cleaned = cleaned[1:].strip()
            if cleaned:
                lines.append(cleaned)
    return lines


def join_comment(comments: Iterable[str]) -> str:
    return " ".join(clean_comment_lines(comments))


def parse_handler_info(doc: Iterable[str]) -> HandlerInfo:
    """Build a :class:`HandlerInfo` from the raw doc comment of a handler.

    The first plain line is the summary, the second the description, and
    ``@Param name in type required "description"`` lines become parameters.
    Other ``@`` annotations are ignored.
    """
    summary = ""
    description = ""
    parameters: list[Parameter] = []

    for line in clean_comment_lines(doc):
        match = _PARAM_PATTERN.search(line)
        if match:
            name, location, type_, required, text = match.groups()
            parameters.append(
                Parameter(
                    name=name,
                    in_=location,
                    type=type_,
                    required=required == "true",
                    description=text,
                )
            )
        elif line.startswith("@"):
            continue
        elif not summary:
            summary = line
        elif not description:
            description = line

    return HandlerInfo(summary=summary, description=description, parameters=parameters)
