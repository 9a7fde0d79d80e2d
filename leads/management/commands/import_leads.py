import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from pydantic import ValidationError as SchemaValidationError

from core.exceptions import AppError, ConflictError
from leads.schemas import LeadCreateSchema
from services.storage import get_storage


class Command(BaseCommand):
    help = "Import leads from a JSON export, skipping emails submitted within the duplicate window"

    def add_arguments(self, parser):
        parser.add_argument(
            "path",
            nargs="?",
            default=str(Path(settings.BASE_DIR) / "data" / "leads.json"),
            help="JSON file containing a list of lead objects",
        )

    def handle(self, *args, **options):
        json_path = Path(options["path"])
        if not json_path.exists():
            raise CommandError(f"Leads JSON file not found at {json_path}")

        with open(json_path, "r", encoding="utf-8") as f:
            leads_data = json.load(f)
        if not isinstance(leads_data, list):
            raise CommandError("Leads file must contain a JSON list")

        storage = get_storage()
        created_count = 0
        skipped_count = 0
        error_count = 0

        for index, lead_data in enumerate(leads_data):
            label = lead_data.get("email", f"row {index}") if isinstance(lead_data, dict) else f"row {index}"
            try:
                data = LeadCreateSchema.model_validate(lead_data)
                storage.create_lead(data, {"referrer": "import"})
                created_count += 1
            except ConflictError:
                skipped_count += 1
            except (SchemaValidationError, AppError) as e:
                self.stdout.write(self.style.ERROR(f"Error importing lead {label}: {e}"))
                error_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"Import complete: {created_count} created, {skipped_count} duplicates skipped, {error_count} errors"
            )
        )
