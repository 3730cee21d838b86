from progressly.models.user import User
from progressly.models.subscription import Subscription
from progressly.models.usage_period import UsagePeriod
from progressly.models.affiliate import Affiliate, Referral, Commission, Payout
from progressly.models.support_ticket import SupportTicket, TicketMessage
from progressly.models.newsletter_subscriber import NewsletterSubscriber

__all__ = [
    "User",
    "Subscription",
    "UsagePeriod",
    "Affiliate",
    "Referral",
    "Commission",
    "Payout",
    "SupportTicket",
    "TicketMessage",
    "NewsletterSubscriber",
]
