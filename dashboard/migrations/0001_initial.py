from django.db import migrations, models
import django.db.models.deletion
import uuid


def _organization(related_name):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE,
        related_name=related_name,
        to="accounts.organization",
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Sensor",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("external_id", models.CharField(max_length=100)),
                ("name", models.CharField(max_length=150)),
                ("active", models.BooleanField(default=True)),
                ("location_name", models.CharField(max_length=150, blank=True, null=True)),
                ("last_synced_at", models.DateTimeField(null=True, blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organization", _organization("sensors")),
            ],
            options={
                "db_table": "sensors",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("organization", "external_id"), name="unique_sensor_per_org"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Equipment",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("name", models.CharField(max_length=150)),
                (
                    "equipment_type",
                    models.CharField(
                        max_length=10, choices=[("fridge", "Fridge"), ("freezer", "Freezer")], default="fridge"
                    ),
                ),
                ("location_name", models.CharField(max_length=150, blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("organization", _organization("equipment")),
                (
                    "sensor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="equipment",
                        to="dashboard.sensor",
                    ),
                ),
            ],
            options={
                "db_table": "equipment",
                "ordering": ["equipment_type", "name"],
            },
        ),
        migrations.CreateModel(
            name="SensorReading",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("temperature", models.DecimalField(max_digits=6, decimal_places=2)),
                ("recorded_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "sensor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="readings", to="dashboard.sensor"
                    ),
                ),
            ],
            options={
                "db_table": "sensor_readings",
                "ordering": ["-recorded_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("sensor", "recorded_at"), name="unique_sensor_reading_time"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VendorPriceHistory",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("vendor", models.CharField(max_length=150)),
                ("item_code", models.CharField(max_length=100)),
                ("product_name", models.CharField(max_length=255)),
                ("price", models.DecimalField(max_digits=10, decimal_places=2)),
                ("previous_price", models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)),
                ("effective_date", models.DateField()),
                ("previous_effective_date", models.DateField(null=True, blank=True)),
                (
                    "source_type",
                    models.CharField(
                        max_length=10, choices=[("invoice", "Invoice"), ("manual", "Manual")], default="invoice"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("organization", _organization("vendor_prices")),
            ],
            options={
                "db_table": "vendor_price_history",
                "ordering": ["-created_at"],
                "verbose_name_plural": "Vendor price history",
                "indexes": [
                    models.Index(fields=["organization", "vendor", "item_code"], name="vendor_price_item_idx"),
                    models.Index(fields=["organization", "created_at"], name="vendor_price_created_idx"),
                ],
            },
        ),
    ]
