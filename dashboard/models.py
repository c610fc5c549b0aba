from django.db import models
import uuid

from accounts.models import Organization


class Sensor(models.Model):
    """A SensorPush sensor registered to an organization."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='sensors')
    external_id = models.CharField(max_length=100)
    name = models.CharField(max_length=150)
    active = models.BooleanField(default=True)
    location_name = models.CharField(max_length=150, blank=True, null=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sensors'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['organization', 'external_id'], name='unique_sensor_per_org'),
        ]

    def __str__(self):
        return self.name


class Equipment(models.Model):
    EQUIPMENT_TYPE_CHOICES = (
        ('fridge', 'Fridge'),
        ('freezer', 'Freezer'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='equipment')
    name = models.CharField(max_length=150)
    equipment_type = models.CharField(max_length=10, choices=EQUIPMENT_TYPE_CHOICES, default='fridge')
    location_name = models.CharField(max_length=150, blank=True, null=True)
    sensor = models.ForeignKey(Sensor, on_delete=models.SET_NULL, null=True, blank=True, related_name='equipment')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'equipment'
        ordering = ['equipment_type', 'name']

    def __str__(self):
        return f"{self.name} ({self.equipment_type})"


class SensorReading(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sensor = models.ForeignKey(Sensor, on_delete=models.CASCADE, related_name='readings')
    # Degrees Fahrenheit
    temperature = models.DecimalField(max_digits=6, decimal_places=2)
    recorded_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sensor_readings'
        ordering = ['-recorded_at']
        constraints = [
            models.UniqueConstraint(fields=['sensor', 'recorded_at'], name='unique_sensor_reading_time'),
        ]

    def __str__(self):
        return f"{self.sensor} {self.temperature}°F at {self.recorded_at}"


class VendorPriceHistory(models.Model):
    SOURCE_CHOICES = (
        ('invoice', 'Invoice'),
        ('manual', 'Manual'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name='vendor_prices')
    vendor = models.CharField(max_length=150)
    item_code = models.CharField(max_length=100)
    product_name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    previous_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    effective_date = models.DateField()
    previous_effective_date = models.DateField(null=True, blank=True)
    source_type = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='invoice')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'vendor_price_history'
        ordering = ['-created_at']
        verbose_name_plural = "Vendor price history"
        indexes = [
            models.Index(fields=['organization', 'vendor', 'item_code'], name='vendor_price_item_idx'),
            models.Index(fields=['organization', 'created_at'], name='vendor_price_created_idx'),
        ]

    def __str__(self):
        return f"{self.vendor} {self.item_code}: {self.price}"

    @property
    def change_percent(self):
        if self.previous_price is None or self.previous_price <= 0:
            return 0.0
        return round(float((self.price - self.previous_price) / self.previous_price * 100), 2)
