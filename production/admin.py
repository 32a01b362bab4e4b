from django import forms
from django.contrib import admin
from django.db.models import IntegerField, Sum
from django.db.models.functions import Coalesce

from .models import Batch, Flock, LivestockType, MortalityRecord, WeightRecord
from .services.mortality import MortalityService


class WeightRecordInline(admin.TabularInline):
    model = WeightRecord
    extra = 0
    fields = ("weighing_date", "age_in_days", "sample_size", "average_weight", "uniformity")
    readonly_fields = ("age_in_days",)
    ordering = ("weighing_date",)


@admin.register(LivestockType)
class LivestockTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "fcr_excellent", "fcr_good", "fcr_average", "fcr_poor", "initial_weight_kg")
    search_fields = ("name", "code")
    prepopulated_fields = {"code": ("name",)}


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    inlines = (WeightRecordInline,)
    list_display = (
        "name",
        "livestock_type",
        "arrival_date",
        "quantity_received",
        "current_stock",
        "total_mortality",
        "status",
    )
    search_fields = ("name",)
    list_filter = ("status", "livestock_type")

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ("current_stock",)
        return ()

    def get_queryset(self, request):
        queryset = super().get_queryset(request)
        return queryset.annotate(
            mortality_total=Coalesce(Sum("mortality_records__count"), 0, output_field=IntegerField())
        )

    @admin.display(ordering="mortality_total", description="Deaths")
    def total_mortality(self, obj):
        return obj.mortality_total


@admin.register(Flock)
class FlockAdmin(admin.ModelAdmin):
    list_display = ("name", "flock_type", "breed", "arrival_date", "opening_stock", "current_stock", "status")
    search_fields = ("name", "breed")
    list_filter = ("status", "flock_type")


@admin.register(WeightRecord)
class WeightRecordAdmin(admin.ModelAdmin):
    list_display = ("weighing_date", "batch", "age_in_days", "sample_size", "average_weight", "uniformity")
    list_filter = ("batch",)
    search_fields = ("batch__name",)
    ordering = ("-weighing_date",)
    readonly_fields = ("age_in_days", "created_at", "updated_at")

    def save_model(self, request, obj, form, change):
        if not obj.recorded_by_id:
            obj.recorded_by = request.user
        super().save_model(request, obj, form, change)


class MortalityRecordAdminForm(forms.ModelForm):
    class Meta:
        model = MortalityRecord
        fields = ("batch", "date", "count", "cause")

    def clean(self):
        cleaned = super().clean()
        batch = cleaned.get("batch") or (self.instance.batch if self.instance.pk else None)
        count = cleaned.get("count")
        if not batch or not count:
            return cleaned
        previous = 0
        if self.instance.pk:
            previous = MortalityRecord.objects.get(pk=self.instance.pk).count
        if count - previous > batch.current_stock:
            raise forms.ValidationError("Mortality cannot exceed the live birds of the batch.")
        return cleaned


@admin.register(MortalityRecord)
class MortalityRecordAdmin(admin.ModelAdmin):
    form = MortalityRecordAdminForm
    list_display = ("date", "batch", "count", "cause", "recorded_by")
    list_filter = ("batch", "date")
    search_fields = ("batch__name", "cause")
    ordering = ("-date",)

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ("batch",)
        return ()

    def save_model(self, request, obj, form, change):
        service = MortalityService(actor=request.user)
        if change:
            stored = MortalityRecord.objects.get(pk=obj.pk)
            service.update(stored, count=obj.count, on_date=obj.date, cause=obj.cause)
            return
        created = service.register(batch=obj.batch, count=obj.count, on_date=obj.date, cause=obj.cause)
        obj.pk = created.pk

    def delete_model(self, request, obj):
        MortalityService(actor=request.user).delete(obj)
