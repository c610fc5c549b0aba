import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import Organization
from core.timezone_utils import organization_today
from dashboard.models import Equipment, Sensor
from dashboard.prices import record_price
from dashboard.temperature import record_reading
from performance.cycles import get_current_cycle
from performance.models import StagedEvent
from performance.services import add_point_event, add_point_reduction
from team.models import TeamMember

User = get_user_model()

TEAM = [
    ("Adama", "Diop", "0101", 5),
    ("Sarah", "Connor", "0102", 5),
    ("John", "Smith", "0103", 4),
    ("Emily", "Chen", "0104", 3),
    ("Michael", "Wong", "0105", 5),
]

PRICES = [
    ("Sysco", "1001", "Butter 1lb", Decimal("4.10")),
    ("Sysco", "1002", "Heavy Cream 1L", Decimal("3.25")),
    ("GFS", "2001", "Flour 20kg", Decimal("21.50")),
    ("GFS", "2002", "Canola Oil 16L", Decimal("38.00")),
]


class Command(BaseCommand):
    help = 'Seeds a demo kitchen with a team, performance history, sensors and vendor prices'

    def add_arguments(self, parser):
        parser.add_argument('--email', default='demo@brigade.local', help='Organization and manager login email')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        email = options['email']
        self.stdout.write('Starting seeding process...')

        with transaction.atomic():
            organization, created = Organization.objects.get_or_create(
                email=email,
                defaults={'name': "Brigade Demo Kitchen", 'timezone': "America/Toronto"},
            )
            if not created:
                raise CommandError(f'Organization {email} already exists; pick another --email.')

            manager = User.objects.create_user(
                email=f"manager+{email}",
                password='password123',
                first_name="Morgan",
                last_name="Manager",
                role="MANAGER",
                security_level=2,
                organization=organization,
            )
            self.stdout.write(f'Created manager: {manager.email}')

            today = organization_today(organization)
            members = []
            for first, last, employee_id, level in TEAM:
                members.append(TeamMember.objects.create(
                    organization=organization,
                    first_name=first,
                    last_name=last,
                    external_employee_id=employee_id,
                    security_level=level,
                    hire_date=today - timedelta(days=rng.randint(90, 1500)),
                ))
            self.stdout.write(f'Created {len(members)} team members')

            cycle = get_current_cycle(organization)
            event_types = ['tardiness_minor', 'tardiness_major', 'early_departure', 'no_call_no_show']
            for member in members:
                for _ in range(rng.randint(0, 3)):
                    day = max(cycle.start_date, today - timedelta(days=rng.randint(0, 45)))
                    add_point_event(organization, manager, member, rng.choice(event_types), event_date=day)
                if rng.random() < 0.4:
                    add_point_reduction(organization, manager, member, 'stay_late', event_date=today)
                StagedEvent.objects.create(
                    organization=organization,
                    team_member=member,
                    event_type='tardiness_minor',
                    suggested_points=1,
                    description=f"Arrived {rng.randint(5, 14)} min late",
                    event_date=today - timedelta(days=1),
                    source='manual',
                    created_by=manager,
                )
            self.stdout.write(f'Seeded points for cycle {cycle}')

            now = timezone.now()
            for index, (name, kind, base) in enumerate([("Walk-in", 'fridge', 37), ("Chest freezer", 'freezer', -4)]):
                sensor = Sensor.objects.create(
                    organization=organization, external_id=f"demo-{index}", name=f"{name} sensor", location_name="Kitchen"
                )
                Equipment.objects.create(
                    organization=organization, name=name, equipment_type=kind, location_name="Kitchen", sensor=sensor
                )
                for step in range(12):
                    temperature = Decimal(base) + Decimal(rng.randint(-10, 10)) / 10
                    record_reading(sensor, temperature, now - timedelta(minutes=5 * step))

            for vendor, item_code, product, price in PRICES:
                record_price(organization, vendor, item_code, product, price, today - timedelta(days=14))
                change = Decimal(rng.randint(-8, 12)) / 100
                record_price(organization, vendor, item_code, product, (price * (1 + change)).quantize(Decimal('0.01')), today)

        self.stdout.write(self.style.SUCCESS('Seeding completed successfully!'))
