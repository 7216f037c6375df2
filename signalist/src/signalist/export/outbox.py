import json
import re
from pathlib import Path
from typing import Union


def slugify_email(email: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", (email or "").strip().lower())
    return slug.strip("-") or "unknown"


class OutboxSender:
    """
    Email sender that writes each message to disk instead of delivering it.
    Layout: {root}/emails/{date}/{slug}.md and {slug}.json
    """

    def __init__(self, root: Union[str, Path] = "./exports"):
        self.root = Path(root)

    def message_dir(self, date: str) -> Path:
        path = self.root / "emails" / date
        path.mkdir(parents=True, exist_ok=True)
        return path

    def __call__(self, email: str, date: str, content: str) -> str:
        out_dir = self.message_dir(date)
        base = slugify_email(email)
        md_path = out_dir / f"{base}.md"
        json_path = out_dir / f"{base}.json"

        lines = [
            f"# Market News Summary Today - {date}",
            f"**To**: {email}",
            "",
            content,
        ]
        with open(md_path, "w") as f:
            f.write("\n".join(lines))

        with open(json_path, "w") as f:
            json.dump(
                {"to": email, "date": date, "subject": f"Market News Summary Today - {date}", "content": content},
                f,
                indent=2,
                sort_keys=True,
            )
        return str(md_path)
