import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("labs", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Reservation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start", models.DateTimeField()),
                ("end", models.DateTimeField()),
                ("purpose", models.CharField(max_length=255)),
                ("notes", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")], default="pending", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reservations", to=settings.AUTH_USER_MODEL)),
                ("confirmed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="confirmed_reservations", to=settings.AUTH_USER_MODEL)),
                ("cancelled_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="cancelled_reservations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-start"],
                "indexes": [
                    models.Index(fields=["start", "end"], name="reservation_window_idx"),
                    models.Index(fields=["status"], name="reservation_status_idx"),
                    models.Index(fields=["user", "start"], name="reservation_user_start_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("end__gt", models.F("start"))), name="reservation_end_after_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReservationEquipment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("equipment", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="reservation_links", to="labs.equipment")),
                ("reservation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="equipment_links", to="reservations.reservation")),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("reservation", "equipment"), name="uniq_reservation_equipment"),
                ],
            },
        ),
        migrations.AddField(
            model_name="reservation",
            name="equipment",
            field=models.ManyToManyField(related_name="reservations", through="reservations.ReservationEquipment", to="labs.equipment"),
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=200)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("entity", models.CharField(blank=True, max_length=100)),
                ("before", models.JSONField(blank=True, null=True)),
                ("after", models.JSONField(blank=True, null=True)),
                ("details", models.TextField(blank=True, null=True)),
                ("actor", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-timestamp"],
            },
        ),
    ]
