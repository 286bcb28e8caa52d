# reservations/admin.py
from django.contrib import admin
from .models import AuditLog, Reservation, ReservationEquipment


class ReservationEquipmentInline(admin.TabularInline):
    model = ReservationEquipment
    extra = 0
    raw_id_fields = ("equipment",)


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    """
    Stored fields only; effective statuses are computed by the API.
    """
    list_display = ("id", "user", "start", "end", "status", "confirmed_by", "cancelled_by")
    list_filter = ("status", "start")
    search_fields = ("user__username", "user__email", "purpose")
    date_hierarchy = "start"
    ordering = ("-start",)
    list_per_page = 25
    inlines = [ReservationEquipmentInline]

    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        ("Reservation", {
            "fields": ("start", "end", "status")
        }),
        ("Requester", {
            "fields": ("user", "purpose", "notes")
        }),
        ("Audit Data", {
            "fields": ("confirmed_by", "cancelled_by", "created_at", "updated_at")
        }),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """
    Read-only trail of reservation and equipment actions.
    """
    list_display = ("timestamp", "actor", "action", "entity", "details")
    readonly_fields = ("timestamp", "actor", "action", "entity", "before", "after", "details")
    search_fields = ("actor__username", "action", "entity")
    ordering = ("-timestamp",)
    list_per_page = 50
