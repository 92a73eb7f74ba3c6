# report.py
from datetime import datetime

import pytz

RECENT_COUNT = 5


def build_report(stats, tag="snapshot", tzname="Asia/Jakarta"):
    now = datetime.now(pytz.timezone(tzname)).strftime("%Y-%m-%d %H:%M")
    lines = [f"Whitelist {tag} report ({now})"]
    lines.append(f"Total registered: {stats.count}")

    recent = list(stats.usernames[-RECENT_COUNT:])
    if recent:
        lines.append(f"Recent {len(recent)}: " + ", ".join(recent))
    else:
        lines.append("No entries yet")

    return "\n".join(lines)
