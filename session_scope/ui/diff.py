"""Line-based unified diff for Edit tool inputs."""

from dataclasses import dataclass

LOOKAHEAD = 3


@dataclass
class DiffLine:
    type: str  # "context", "added" or "removed"
    line_number: int
    content: str


def create_unified_diff(old_text: str, new_text: str) -> list[DiffLine]:
    """Diff two texts line by line.

    When lines differ, up to LOOKAHEAD lines ahead are checked for a pure
    deletion (the new line reappears later in the old text) or a pure
    insertion (the old line reappears later in the new text). Otherwise the
    pair is reported as a removal followed by an addition. Nothing is
    dropped: keeping context+added lines rebuilds new_text and keeping
    context+removed lines rebuilds old_text.
    """
    old_lines = (old_text or "").split("\n")
    new_lines = (new_text or "").split("\n")
    diff: list[DiffLine] = []
    i = j = 0

    while i < len(old_lines) or j < len(new_lines):
        if i >= len(old_lines):
            diff.append(DiffLine("added", j + 1, new_lines[j]))
            j += 1
            continue
        if j >= len(new_lines):
            diff.append(DiffLine("removed", i + 1, old_lines[i]))
            i += 1
            continue

        old_line, new_line = old_lines[i], new_lines[j]
        if old_line == new_line:
            diff.append(DiffLine("context", i + 1, old_line))
            i += 1
            j += 1
            continue

        matched = False
        for ahead in range(1, LOOKAHEAD + 1):
            if i + ahead < len(old_lines) and old_lines[i + ahead] == new_line:
                diff.extend(DiffLine("removed", i + k + 1, old_lines[i + k]) for k in range(ahead))
                i += ahead
                matched = True
                break
            if j + ahead < len(new_lines) and new_lines[j + ahead] == old_line:
                diff.extend(DiffLine("added", j + k + 1, new_lines[j + k]) for k in range(ahead))
                j += ahead
                matched = True
                break

        if not matched:
            diff.append(DiffLine("removed", i + 1, old_line))
            diff.append(DiffLine("added", j + 1, new_line))
            i += 1
            j += 1

    return diff


def trim_context(diff: list[DiffLine], context: int) -> list[DiffLine | None]:
    """Keep changed lines plus `context` lines around them.

    Runs of dropped context are replaced by a single ``None`` marker so the
    caller can draw a gap. A diff without changes comes back empty.
    """
    changed = [n for n, line in enumerate(diff) if line.type != "context"]
    if not changed:
        return []

    keep = set()
    for n in changed:
        keep.update(range(max(0, n - context), min(len(diff), n + context + 1)))

    trimmed: list[DiffLine | None] = []
    skipped = False
    for n, line in enumerate(diff):
        if n in keep:
            if skipped:
                trimmed.append(None)
                skipped = False
            trimmed.append(line)
        else:
            skipped = True
    if skipped:
        trimmed.append(None)
    return trimmed
