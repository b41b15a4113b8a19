import os

from django.core.management.base import BaseCommand
from django.db.models import Q

from frontdesk.models import User


class Command(BaseCommand):
    help = "Create the front-desk administrator account if it does not exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.getenv('ADMIN_EMAIL', 'root@localhost'))
        parser.add_argument('--username', default=os.getenv('ADMIN_USERNAME', 'root'))
        parser.add_argument('--password', default=os.getenv('ADMIN_PASSWORD', '1234'))

    def handle(self, *args, **opts):
        email = opts['email'].strip().lower()
        username = opts['username']
        existing = User.objects.filter(Q(email__iexact=email) | Q(username=username)).first()
        if existing:
            self.stdout.write(self.style.WARNING(f"admin already exists: {existing.username} (skipped)"))
            return
        user = User(
            username=username,
            email=email,
            first_name='Admin',
            last_name='User',
            role='admin',
            is_active=True,
            is_staff=True,
        )
        # 不走密码强度校验，仅用于本地初始化
        user.set_password(opts['password'])
        user.save()
        self.stdout.write(self.style.SUCCESS(f"admin created: {email} (id={user.pk})"))
