from decimal import Decimal

from django.db import migrations


DEFAULT_LIVESTOCK_TYPES = (
    {
        "name": "Broiler chicken",
        "code": "broiler",
        "fcr_excellent": Decimal("1.600"),
        "fcr_good": Decimal("1.800"),
        "fcr_average": Decimal("2.000"),
        "fcr_poor": Decimal("2.200"),
        "initial_weight_kg": Decimal("0.045"),
    },
)


def seed_livestock_types(apps, schema_editor):
    LivestockType = apps.get_model("production", "LivestockType")
    db_alias = schema_editor.connection.alias

    for values in DEFAULT_LIVESTOCK_TYPES:
        defaults = {key: value for key, value in values.items() if key != "code"}
        LivestockType.objects.using(db_alias).get_or_create(code=values["code"], defaults=defaults)


def remove_livestock_types(apps, schema_editor):
    LivestockType = apps.get_model("production", "LivestockType")
    db_alias = schema_editor.connection.alias
    codes = [values["code"] for values in DEFAULT_LIVESTOCK_TYPES]
    LivestockType.objects.using(db_alias).filter(code__in=codes, batches__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("production", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_livestock_types, remove_livestock_types),
    ]
