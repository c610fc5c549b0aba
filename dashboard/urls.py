from django.urls import path
from .views import (
    EquipmentDetailView,
    EquipmentListCreateView,
    PriceChangeTickerView,
    SensorListCreateView,
    SensorReadingHistoryView,
    TemperatureLogView,
    TemperatureVisibilityView,
    TemperatureWidgetView,
)

urlpatterns = [
    path('temperature/', TemperatureWidgetView.as_view(), name='temperature-widget'),
    path('temperature/visibility/', TemperatureVisibilityView.as_view(), name='temperature-visibility'),
    path('temperature/log/', TemperatureLogView.as_view(), name='temperature-log'),
    path('sensors/', SensorListCreateView.as_view(), name='sensor-list-create'),
    path('sensors/<uuid:pk>/readings/', SensorReadingHistoryView.as_view(), name='sensor-readings'),
    path('equipment/', EquipmentListCreateView.as_view(), name='equipment-list-create'),
    path('equipment/<uuid:pk>/', EquipmentDetailView.as_view(), name='equipment-detail'),
    path('price-changes/', PriceChangeTickerView.as_view(), name='price-change-ticker'),
]
