"""WhitePages data broker implementation."""

from broker_remover.brokers.base import BaseBroker, BrokerInfo, FormField


class WhitePagesBroker(BaseBroker):
    """WhitePages suppression request; verified by phone call."""

    @property
    def info(self) -> BrokerInfo:
        return BrokerInfo(
            name="Whitepages",
            domain="whitepages.com",
            category="people-search",
            opt_out_url="https://www.whitepages.com/suppression-requests",
            opt_out_method="form",
            difficulty="medium",
            data_types=["name", "address", "phone", "relatives"],
            response_days=1,
            regions=["US"],
            laws=["CCPA"],
        )

    def form_fields(self) -> list[FormField]:
        return [
            FormField("url", 'input[name="url"]', "url", "Listing URL"),
            FormField("phone", 'input[name="phone"], input[type="tel"]', "tel", "Phone number for verification call"),
            FormField(
                "reason",
                'select[name="reason"]',
                "select",
                "Reason for removal",
                options=("I just want to remove my listing", "Identity theft concern", "Other"),
            ),
        ]
