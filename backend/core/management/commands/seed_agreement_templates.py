"""
Management command to seed the default merchant agreement template
"""
from django.core.management.base import BaseCommand
from backend.agreements.models import AgreementTemplate
from backend.agreements.utils import FALLBACK_TEMPLATE


class Command(BaseCommand):
    help = "Creates the default store onboarding agreement template"

    def add_arguments(self, parser):
        parser.add_argument(
            '--template-version',
            default=FALLBACK_TEMPLATE['version'],
            help='Template version to create (default: v1)',
        )
        parser.add_argument(
            '--deactivate-others',
            action='store_true',
            help='Deactivate every other version of the default template',
        )

    def handle(self, *args, **options):
        version = options['template_version']
        template_key = FALLBACK_TEMPLATE['template_key']

        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING AGREEMENT TEMPLATE"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        template, created = AgreementTemplate.objects.get_or_create(
            template_key=template_key,
            version=version,
            defaults={
                'title': FALLBACK_TEMPLATE['title'],
                'content_markdown': FALLBACK_TEMPLATE['content_markdown'],
                'is_active': True,
            }
        )

        if created:
            self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {template_key} {version}"))
        else:
            self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {template_key} {version}"))

        if options['deactivate_others']:
            count = AgreementTemplate.objects.filter(template_key=template_key).exclude(pk=template.pk).update(is_active=False)
            self.stdout.write(f"Deactivated other versions: {count}")

        self.stdout.write(f"Active templates in database: {AgreementTemplate.objects.filter(is_active=True).count()}")
