from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("production", "0002_seed_livestock_types"),
    ]

    operations = [
        migrations.CreateModel(
            name="Flock",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("name", models.CharField(max_length=150, unique=True, verbose_name="Name")),
                (
                    "flock_type",
                    models.CharField(
                        choices=[("layers", "Layers"), ("pullets", "Pullets")],
                        default="layers",
                        max_length=10,
                        verbose_name="Flock type",
                    ),
                ),
                ("breed", models.CharField(blank=True, max_length=100, verbose_name="Breed")),
                ("arrival_date", models.DateField(verbose_name="Arrival date")),
                ("opening_stock", models.PositiveIntegerField(verbose_name="Opening stock")),
                ("current_stock", models.PositiveIntegerField(blank=True, verbose_name="Live birds")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("declining", "Declining"),
                            ("depleted", "Depleted"),
                            ("sold", "Sold"),
                        ],
                        default="active",
                        max_length=10,
                        verbose_name="Status",
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Flock",
                "verbose_name_plural": "Flocks",
                "ordering": ("name",),
            },
        ),
    ]
