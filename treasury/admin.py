from django.contrib import admin, messages
from django_fsm import TransitionNotAllowed
from django_object_actions import DjangoObjectActions, action

from treasury.models import BankAccount, TreasuryPayment, WarehouseCash
from treasury.services.payments import clear_payment, deposit_payment


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "bank", "account_number", "balance", "updated_at")
    search_fields = ("name", "bank", "account_number")
    readonly_fields = ("balance", "updated_at")


@admin.register(WarehouseCash)
class WarehouseCashAdmin(admin.ModelAdmin):
    list_display = ("warehouse", "amount", "updated_at")
    readonly_fields = ("warehouse", "amount", "updated_at")

    def has_add_permission(self, request):
        return False


@admin.register(TreasuryPayment)
class TreasuryPaymentAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Payments are derived from invoices; here they can only be deposited or cleared."""

    list_display = ("payment_date", "invoice_number", "entity", "payment_type", "payment_method", "amount", "status")
    list_filter = ("payment_type", "payment_method", "status")
    search_fields = ("invoice_number", "entity", "check_number")
    change_actions = ("deposit_action", "clear_action")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields if f.name not in ("notes", "maturity_date")]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        # removed together with their invoice
        return False

    def get_change_actions(self, request, object_id, form_url):
        obj = self.get_object(request, object_id)
        if not obj:
            return ()
        names = {t.name for t in obj.get_available_status_transitions()}
        return tuple(a for a, name in (("deposit_action", "deposit"), ("clear_action", "clear")) if name in names)

    @action(label="Deposit at bank", description="Check handed to the bank")
    def deposit_action(self, request, obj):
        try:
            deposit_payment(obj)
        except TransitionNotAllowed as exc:
            self.message_user(request, f"Could not deposit: {exc}", level=messages.ERROR)
            return
        self.message_user(request, "Payment deposited.", level=messages.SUCCESS)

    @action(label="Mark cleared", description="Money received; book it on the balance")
    def clear_action(self, request, obj):
        try:
            payment = clear_payment(obj)
        except TransitionNotAllowed as exc:
            self.message_user(request, f"Could not clear: {exc}", level=messages.ERROR)
            return
        self.message_user(request, f"Payment cleared, {payment.amount} booked.", level=messages.SUCCESS)
