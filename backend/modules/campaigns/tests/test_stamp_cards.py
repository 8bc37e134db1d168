# backend/modules/campaigns/tests/test_stamp_cards.py

from datetime import datetime

from modules.campaigns.models.campaign_models import CampaignType, CampaignUsage, DiscountType
from modules.campaigns.services.stamp_card_service import customer_stamp_cards, stamp_progress
from modules.transactions.schemas.transaction_schemas import (
    TransactionCreate,
    TransactionItemCreate,
)
from modules.transactions.services.transaction_service import TransactionService
from tests.factories import CampaignFactory, CustomerFactory, ProductFactory


class TestStampProgress:
    def test_partial_card(self):
        progress = stamp_progress(total_purchased=7, buy_quantity=5, stamps_used=0)
        assert progress["stamps_earned"] == 1
        assert progress["stamps_available"] == 1
        assert progress["progress_to_next"] == 2
        assert progress["remaining_for_next_stamp"] == 3
        assert progress["can_earn_more"] is True

    def test_used_stamps_are_subtracted(self):
        progress = stamp_progress(total_purchased=12, buy_quantity=5, stamps_used=1)
        assert progress["stamps_earned"] == 2
        assert progress["stamps_available"] == 1

    def test_capped_by_max_stamps(self):
        progress = stamp_progress(total_purchased=23, buy_quantity=5, stamps_used=0, max_stamps=3)
        assert progress["stamps_earned"] == 3
        assert progress["progress_to_next"] == 0
        assert progress["can_earn_more"] is False

    def test_nothing_bought(self):
        progress = stamp_progress(total_purchased=0, buy_quantity=10, stamps_used=0)
        assert progress["stamps_earned"] == 0
        assert progress["remaining_for_next_stamp"] == 10


def test_customer_stamp_cards_count_target_products(db_session, admin_context, restaurant):
    coffee = ProductFactory(restaurant=restaurant, name="Latte")
    cake = ProductFactory(restaurant=restaurant, name="Cheesecake", category="Dessert")
    customer = CustomerFactory(restaurant=restaurant)
    campaign = CampaignFactory(
        restaurant=restaurant,
        name="Buy 5 coffees",
        type=CampaignType.PRODUCT_BASED,
        discount_type=DiscountType.FREE_ITEM,
        free_products=[coffee.id],
        target_products=[coffee.id],
        buy_quantity=5,
        max_usage_per_customer=None,
    )

    service = TransactionService(db_session, admin_context)
    service.create_transaction(TransactionCreate(
        customer_id=customer.id,
        items=[
            TransactionItemCreate(product_id=coffee.id, quantity=4),
            TransactionItemCreate(product_id=cake.id, quantity=2),
        ],
    ))
    service.create_transaction(TransactionCreate(
        customer_id=customer.id,
        items=[TransactionItemCreate(product_id=coffee.id, quantity=8)],
    ))
    db_session.add(CampaignUsage(campaign_id=campaign.id, customer_id=customer.id))
    db_session.commit()

    cards = customer_stamp_cards(db_session, customer, datetime.utcnow())

    assert len(cards) == 1
    card = cards[0]
    assert card.campaign_id == campaign.id
    assert card.total_purchased == 12
    assert card.stamps_earned == 2
    assert card.stamps_used == 1
    assert card.stamps_available == 1
    assert card.progress_to_next == 2
