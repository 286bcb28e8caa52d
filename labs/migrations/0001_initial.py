import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Lab",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("building", models.CharField(max_length=120)),
                ("room_number", models.CharField(max_length=32)),
                ("capacity", models.PositiveIntegerField(default=20)),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["building", "room_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("building", "room_number"), name="uniq_lab_building_room"),
                    models.CheckConstraint(condition=models.Q(("capacity__gt", 0)), name="lab_capacity_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Equipment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("type", models.CharField(max_length=120)),
                ("serial_number", models.CharField(max_length=120, unique=True)),
                ("status", models.CharField(choices=[("operational", "Operational"), ("maintenance", "Maintenance"), ("out_of_order", "Out of order")], default="operational", max_length=20)),
                ("description", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("lab", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="equipment", to="labs.lab")),
            ],
            options={
                "verbose_name_plural": "equipment",
                "ordering": ["name"],
            },
        ),
    ]
