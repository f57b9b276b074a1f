"""Console notifier adapter - prints fired reminders."""

import click

from echoday.core.models import ActiveReminder


class ConsoleNotifier:
    """
    Terminal notifier.

    Implements Notifier protocol.
    """

    async def notify(self, reminder: ActiveReminder) -> None:
        marker = "!!" if reminder.priority == "high" else "  "
        stamp = reminder.created_at.strftime("%H:%M")
        click.echo(f"[{marker}] {stamp} {reminder.message}  ({reminder.task_id}/{reminder.reminder_id})")
