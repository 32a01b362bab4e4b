import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("inventory", "0001_initial"),
        ("production", "0003_flock"),
    ]

    operations = [
        migrations.AddField(
            model_name="feedconsumption",
            name="consumption_type",
            field=models.CharField(
                choices=[("batch", "Batch"), ("flock", "Flock")],
                default="batch",
                max_length=5,
                verbose_name="Consumption type",
            ),
        ),
        migrations.AddField(
            model_name="feedconsumption",
            name="flock",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="feed_consumptions",
                to="production.flock",
                verbose_name="Flock",
            ),
        ),
        migrations.AlterField(
            model_name="feedconsumption",
            name="batch",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="feed_consumptions",
                to="production.batch",
                verbose_name="Batch",
            ),
        ),
        migrations.AddConstraint(
            model_name="feedconsumption",
            constraint=models.CheckConstraint(
                check=(
                    models.Q(consumption_type="batch", batch__isnull=False, flock__isnull=True)
                    | models.Q(consumption_type="flock", flock__isnull=False, batch__isnull=True)
                ),
                name="feed_consumption_single_fed_group",
            ),
        ),
    ]
