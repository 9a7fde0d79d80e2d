"""
Django management command to create (or promote) an admin account
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from authentication.models import User
from authentication.passwords import hash_password


class Command(BaseCommand):
    help = 'Creates an admin user, or promotes an existing account to admin'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Admin email (defaults to ADMIN_EMAIL)')
        parser.add_argument('--password', help='Admin password (defaults to ADMIN_PASSWORD)')
        parser.add_argument('--name', default='Administrator', help='Display name for a new account')
        parser.add_argument(
            '--reset-password',
            action='store_true',
            help='Overwrite the password when the account already exists',
        )

    def handle(self, *args, **options):
        email = (options.get('email') or settings.ADMIN_EMAIL or '').strip().lower()
        password = options.get('password') or settings.ADMIN_PASSWORD

        if not email:
            raise CommandError('An email is required: pass --email or set ADMIN_EMAIL')

        user = User.objects.filter(email=email).first()
        if user is not None:
            user.role = User.ROLE_ADMIN
            user.is_active = True
            if options.get('reset_password'):
                if not password:
                    raise CommandError('--reset-password needs --password or ADMIN_PASSWORD')
                user.password = hash_password(password)
            user.save()
            self.stdout.write(self.style.SUCCESS(f'✓ Existing user promoted to admin: {email}'))
            return

        if not password or len(password) < 8:
            raise CommandError('A password of at least 8 characters is required: pass --password or set ADMIN_PASSWORD')

        User.objects.create(
            name=options['name'],
            email=email,
            password=hash_password(password),
            role=User.ROLE_ADMIN,
            is_email_verified=True,
        )
        self.stdout.write(self.style.SUCCESS(f'✓ Admin user created: {email}'))
