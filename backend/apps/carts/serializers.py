from rest_framework import serializers

from .items import item_ref_to_raw


class ItemRefSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=["product", "lot"])
    id = serializers.IntegerField()

    def to_representation(self, instance):
        return item_ref_to_raw(instance)


class CartLineReadSerializer(serializers.Serializer):
    id = serializers.CharField()
    item = ItemRefSerializer()
    title = serializers.CharField(allow_null=True)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class CartTotalsSerializer(serializers.Serializer):
    item_count = serializers.IntegerField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    shipping_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    grand_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    free_shipping_remaining = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.CharField()


class CartReadSerializer(serializers.Serializer):
    owner_id = serializers.IntegerField(allow_null=True)
    merge_pending = serializers.BooleanField()
    lines = CartLineReadSerializer(many=True)
    totals = CartTotalsSerializer()


class MergeResultSerializer(serializers.Serializer):
    owner_id = serializers.IntegerField()
    merged_lines = serializers.IntegerField()
    created = serializers.IntegerField()
    incremented = serializers.IntegerField()
    already_merged = serializers.IntegerField()
    dropped_items = ItemRefSerializer(many=True)


# Request bodies are normalized by commands.py; these only document them.
class CartItemAddSerializer(serializers.Serializer):
    productId = serializers.IntegerField(required=False)
    lotId = serializers.IntegerField(required=False)
    quantity = serializers.IntegerField(required=False, default=1)


class CartItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(help_text="Zero or less removes the line")
