# labs/admin.py
from django.contrib import admin
from .models import Equipment, Lab


class EquipmentInline(admin.TabularInline):
    model = Equipment
    extra = 0
    fields = ("name", "type", "serial_number", "status")


@admin.register(Lab)
class LabAdmin(admin.ModelAdmin):
    list_display = ("building", "room_number", "capacity", "created_at")
    search_fields = ("building", "room_number")
    ordering = ("building", "room_number")
    inlines = [EquipmentInline]


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    """
    ``status`` here is the stored operational status, not the computed one.
    """
    list_display = ("name", "type", "serial_number", "lab", "status")
    list_filter = ("status", "type", "lab")
    search_fields = ("name", "serial_number")
    ordering = ("name",)
