from django.contrib import admin

from .models import Bike, Booking, Payment, Verification, VerificationDocument


@admin.action(description="Mark selected bikes as available")
def mark_available(modeladmin, request, qs):
    qs.update(status=Bike.Status.AVAILABLE)


@admin.action(description="Send selected bikes to maintenance")
def mark_maintenance(modeladmin, request, qs):
    qs.update(status=Bike.Status.MAINTENANCE)


@admin.register(Bike)
class BikeAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'name', 'brand', 'model', 'category',
        'price_per_day', 'location', 'status', 'created_at'
    )
    list_filter = ('status', 'category', 'fuel_type', 'location', 'created_at')
    date_hierarchy = 'created_at'
    search_fields = ('id', 'name', 'brand', 'model', 'location')
    readonly_fields = ('rating', 'total_ratings', 'created_at', 'updated_at')
    ordering = ('-created_at',)
    actions = (mark_available, mark_maintenance)


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ('transaction_id', 'status', 'amount', 'currency', 'method', 'created_at')
    readonly_fields = fields
    can_delete = False


@admin.action(description="Cancel selected bookings")
def cancel_bookings(modeladmin, request, qs):
    # per-object save so the availability cache is invalidated
    for booking in qs.filter(status__in=Booking.MODIFIABLE_STATUSES):
        booking.status = Booking.CANCELLED
        booking.save(update_fields=['status', 'updated_at'])


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'bike', 'user_email', 'start_at', 'end_at',
        'total_amount', 'status', 'payment_status', 'created_at'
    )
    list_filter = ('status', 'payment_status', 'bike', 'start_at', 'created_at')
    date_hierarchy = 'start_at'
    search_fields = ('bike__name', 'user__email', 'payment_id', 'razorpay_order_id')
    autocomplete_fields = ('bike', 'user')
    readonly_fields = ('total_hours', 'total_amount', 'paid_at', 'verification', 'created_at', 'updated_at')
    ordering = ('-created_at',)
    list_select_related = ('bike', 'user')
    inlines = (PaymentInline,)
    actions = (cancel_bookings,)

    @admin.display(ordering='user__email', description='Renter')
    def user_email(self, obj):
        return getattr(obj.user, 'email', None)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('id', 'transaction_id', 'booking', 'amount', 'currency', 'status', 'method', 'created_at')
    list_filter = ('status', 'method', 'created_at')
    date_hierarchy = 'created_at'
    search_fields = ('transaction_id', 'order_id', 'booking__user__email')
    autocomplete_fields = ('booking',)
    readonly_fields = ('gateway_response', 'created_at', 'updated_at')
    list_select_related = ('booking',)


class VerificationDocumentInline(admin.TabularInline):
    model = VerificationDocument
    extra = 0
    readonly_fields = ('created_at',)


@admin.register(Verification)
class VerificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'step', 'customer_type', 'date_of_birth', 'completed_at', 'created_at')
    list_filter = ('step', 'customer_type', 'created_at')
    search_fields = ('user__email', 'token')
    autocomplete_fields = ('user',)
    readonly_fields = ('token', 'completed_at', 'created_at', 'updated_at')
    list_select_related = ('user',)
    inlines = (VerificationDocumentInline,)
