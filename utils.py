import re
import sys
import time

from core.types import DeletionStatus

HOME_RE = re.compile(r"^/(home|Users)/[^/]+")

STATUS_LABELS = {
    DeletionStatus.DELETED: "✓ done",
    DeletionStatus.SKIPPED: "○ skip",
    DeletionStatus.EMPTY: "- empty",
    DeletionStatus.FAILED: "✗ fail",
}


def shorten_path(path):
    """Replace a /home/<user> or /Users/<user> prefix with ~."""
    return HOME_RE.sub("~", path, count=1)


def truncate_path(path, width=50):
    if len(path) <= width:
        return path
    return "..." + path[-(width - 3):]


class ProgressBar:
    """Single-line spinner showing the current path and run counters."""

    def __init__(self, desc="Scanning", stream=None):
        self.desc = desc
        self.stream = stream or sys.stdout
        self.start_time = time.time()
        self.spinner = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
        self.spin_idx = 0
        self.active = True

    def update(self, path, action, report):
        """Progress callback for the traversal engine."""
        if not self.active:
            return
        self.spin_idx = (self.spin_idx + 1) % len(self.spinner)
        spinner = self.spinner[self.spin_idx]

        progress_str = f"\r{spinner} {action} {truncate_path(shorten_path(path))} "
        progress_str += f"| {report.folders_scanned:,} folders | {report.total_deleted:,} items"

        # Pad to clear previous line
        progress_str = progress_str.ljust(100)

        self.stream.write(progress_str)
        self.stream.flush()

    def finish(self, message="Done!", ok=True):
        """Finish the progress display."""
        if not self.active:
            return
        self.active = False
        elapsed = time.time() - self.start_time
        mark = "✅" if ok else "❌"
        self.stream.write(f"\r{mark} {message} ({elapsed:.1f}s)".ljust(100) + "\n")
        self.stream.flush()


def format_summary_table(entries, max_path_width=50):
    """Render the per-directory log as a PATH / ITEMS / STATUS table."""
    if not entries:
        return "  No items found in trash.\n"

    rows = [(shorten_path(e.path), e.items, e.status) for e in entries]
    path_width = min(max_path_width, max(max(len(p) for p, _, _ in rows), 4))
    items_width = 7
    status_width = 8

    lines = [
        "",
        "  " + "PATH".ljust(path_width) + "  " + "ITEMS".rjust(items_width) + "  " + "STATUS",
        "  " + "─" * path_width + "  " + "─" * items_width + "  " + "─" * status_width,
    ]
    for path, items, status in rows:
        lines.append("  " + truncate_path(path, path_width).ljust(path_width) + "  "
                     + str(items).rjust(items_width) + "  " + STATUS_LABELS[status])
    lines.append("")
    return "\n".join(lines)


def format_final_summary(report, dry_run=False):
    title = "🔍 Dry Run Complete!" if dry_run else "✅ Cleanup Complete!"
    items_label = "Items found" if dry_run else "Items deleted"
    lines = [
        "=" * 70,
        f"  {title}",
        "=" * 70,
        f"  📁 Folders scanned: {report.folders_scanned:,}",
        f"  🗑️  {items_label}: {report.total_deleted:,}",
        f"  ⏱️  Time taken: {report.elapsed():.1f}s",
    ]
    failed_dirs = report.count(DeletionStatus.FAILED)
    if failed_dirs:
        lines.append(f"  ⚠️  Directories with files left: {failed_dirs}")
    if report.failed_folders:
        lines.append(f"  ⚠️  Folders not removed: {len(report.failed_folders)}")
        for path in report.failed_folders:
            lines.append(f"    - {shorten_path(path)}")
    if dry_run:
        lines.append("")
        lines.append("  💡 Run without --dry-run to delete")
    lines.append("=" * 70)
    return "\n".join(lines)
