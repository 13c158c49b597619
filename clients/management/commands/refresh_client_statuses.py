from django.core.management.base import BaseCommand

from clients.services import refresh_statuses


class Command(BaseCommand):
    help = "Recompute stored client statuses from their membership dates (run daily)"

    def handle(self, *args, **options):
        changed = refresh_statuses()
        self.stdout.write(self.style.SUCCESS(f"Client statuses refreshed: {changed} changed"))
