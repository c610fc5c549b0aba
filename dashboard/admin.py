from django.contrib import admin
from .models import Equipment, Sensor, SensorReading, VendorPriceHistory


@admin.register(Sensor)
class SensorAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'external_id', 'active', 'last_synced_at']
    list_filter = ['active']
    search_fields = ['name', 'external_id']


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'equipment_type', 'sensor', 'is_active']
    list_filter = ['equipment_type', 'is_active']


@admin.register(SensorReading)
class SensorReadingAdmin(admin.ModelAdmin):
    list_display = ['sensor', 'temperature', 'recorded_at']
    date_hierarchy = 'recorded_at'


@admin.register(VendorPriceHistory)
class VendorPriceHistoryAdmin(admin.ModelAdmin):
    list_display = ['product_name', 'vendor', 'item_code', 'previous_price', 'price', 'effective_date']
    search_fields = ['product_name', 'item_code', 'vendor']
