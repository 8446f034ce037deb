from datetime import timedelta
from django.utils import timezone
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from apps.organizations.models import Organization
from apps.catalog.models import App, AppStatus, AppVersion, AppVisibility, Platform
from apps.timeline.models import EventType, TimelineEvent
from apps.enums.services import ensure_defaults

User = get_user_model()

SAMPLE_APPS = [
    {
        'title': 'Taskflow',
        'slug': 'taskflow',
        'short_desc': 'Kanban boards for small teams',
        'platforms': [Platform.WEB, Platform.MOBILE],
        'languages': ['TypeScript', 'React'],
        'tags': ['productivity', 'collaboration'],
        'status': AppStatus.PUBLISHED,
        'website': 'https://taskflow.example.com',
    },
    {
        'title': 'Pocket Ledger',
        'slug': 'pocket-ledger',
        'short_desc': 'Personal budgeting on your phone',
        'platforms': [Platform.IOS, Platform.ANDROID],
        'languages': ['Kotlin', 'Swift'],
        'tags': ['finance'],
        'status': AppStatus.PUBLISHED,
    },
    {
        'title': 'Weather API',
        'slug': 'weather-api',
        'short_desc': 'Forecast data over a simple REST API',
        'platforms': [Platform.API],
        'languages': ['Python', 'Django'],
        'tags': ['data', 'api'],
        'status': AppStatus.DRAFT,
    },
]


class Command(BaseCommand):
    help = 'Seeds the database with sample data for testing.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clean',
            action='store_true',
            help='Delete existing data before seeding',
        )
        parser.add_argument(
            '--users',
            action='store_true',
            help='Seed users and organizations only',
        )
        parser.add_argument(
            '--apps',
            action='store_true',
            help='Seed apps, versions and timeline events only',
        )
        parser.add_argument(
            '--enums',
            action='store_true',
            help='Seed default enums only',
        )

    def handle(self, *args, **options):
        seed_all = not any([options['users'], options['apps'], options['enums']])

        if options['clean']:
            self.stdout.write(self.style.WARNING('Cleaning database...'))
            self._clean_database()
            self.stdout.write(self.style.SUCCESS('Database cleaned.'))

        if seed_all or options['enums']:
            created = ensure_defaults()
            self.stdout.write(f' - Seeded {created} default enum(s)')

        org = self._get_or_create_org()

        if seed_all or options['users']:
            self._seed_users(org)

        if seed_all or options['apps']:
            self._seed_apps(org)

        self.stdout.write(self.style.SUCCESS('Seeding completed successfully.'))

    def _clean_database(self):
        TimelineEvent.objects.all().delete()
        App.objects.all().delete()
        User.objects.exclude(is_superuser=True).delete()
        Organization.objects.all().delete()

    def _get_or_create_org(self):
        org, created = Organization.objects.get_or_create(
            slug='showcase-labs',
            defaults={
                'name': 'Showcase Labs',
                'description': 'Sample organization for local development',
                'website': 'https://showcase.example.com',
            }
        )
        if created:
            self.stdout.write(f'Created Organization: {org.name}')
        else:
            self.stdout.write(f'Using existing Organization: {org.name}')
        return org

    def _seed_users(self, org):
        self.stdout.write('Seeding Users...')

        if not User.objects.filter(username="admin").exists():
            admin = User.objects.create_superuser(
                username="admin",
                email="admin@example.com",
                password="password123",
                org_id=org.id,
                role='admin',
                name="Admin User",
            )
            org.owner_id = admin.id
            org.save(update_fields=['owner_id'])
            self.stdout.write(' - Created admin (password123)')

        for username, role, name in [
            ("developer", 'developer', "Dana Developer"),
            ("viewer", 'viewer', "Victor Viewer"),
        ]:
            if not User.objects.filter(username=username).exists():
                User.objects.create_user(
                    username=username,
                    email=f"{username}@example.com",
                    password="password123",
                    org_id=org.id,
                    role=role,
                    name=name,
                )
                self.stdout.write(f' - Created {username} (password123)')

    def _seed_apps(self, org):
        self.stdout.write('Seeding Apps...')

        developer = User.objects.filter(username="developer").first()
        if not developer:
            self.stdout.write(self.style.WARNING(' - No developer user, run with --users first'))
            return

        now = timezone.now()
        for i, data in enumerate(SAMPLE_APPS):
            published = data['status'] == AppStatus.PUBLISHED
            app, created = App.objects.get_or_create(
                slug=data['slug'],
                defaults={
                    **data,
                    'visibility': AppVisibility.PUBLIC,
                    'organization_id': org.id,
                    'created_by_id': developer.id,
                    'release_date': now - timedelta(days=30 * (i + 1)) if published else None,
                }
            )
            if not created:
                continue

            if published:
                AppVersion.objects.create(
                    app=app,
                    version='1.0.0',
                    changelog='First public release',
                    released_by_id=developer.id,
                    is_latest=True,
                )
                TimelineEvent.objects.create(
                    app_id=app.id,
                    created_by_id=developer.id,
                    title=f'{app.title} 1.0 released',
                    type=EventType.RELEASE,
                    date=app.release_date,
                    version='1.0.0',
                )
            self.stdout.write(f' - Created app {app.title}')
