"""Seed catalog of known data brokers and the automation allow-list."""

from urllib.parse import urlsplit

from broker_remover.brokers import list_brokers

# Typical data held per category, used when an entry does not list its own
CATEGORY_DATA_TYPES = {
    "people-search": ["name", "address", "phone", "email", "relatives", "age"],
    "background-check": ["name", "address", "criminal_records", "court_records", "employment"],
    "credit-reporting": ["name", "address", "ssn", "credit_history", "employment"],
    "marketing": ["name", "address", "email", "purchase_history", "demographics"],
    "advertising": ["device_ids", "location", "browsing_history", "demographics"],
    "social-media": ["name", "photos", "social_profiles", "usernames"],
    "risk-management": ["name", "address", "ssn", "property_records", "insurance_claims"],
    "insurance": ["name", "prescription_history", "insurance_claims", "driving_records"],
    "financial": ["name", "bank_accounts", "check_history", "ssn"],
    "personal-data": ["name", "address", "photos", "property_records", "voter_records"],
    "other": ["name"],
}


def _domain(url: str) -> str:
    host = urlsplit(url).hostname or ""
    return ".".join(host.split(".")[-2:])


def _entry(name, url, category, difficulty="medium", method="form", response_days=None,
           laws=None, regions=None, premium=False):
    return {
        "name": name,
        "domain": _domain(url),
        "category": category,
        "opt_out_url": url,
        "opt_out_method": method,
        "difficulty": difficulty,
        "data_types": list(CATEGORY_DATA_TYPES[category]),
        "response_days": response_days,
        "regions": regions or ["US"],
        "laws": laws,
        "premium": premium,
    }


_CATALOG = [
    # Credit bureaus and consumer reporting
    _entry("Experian", "https://www.experian.com/privacy/center.html", "credit-reporting", "hard", response_days=45, laws=["FCRA", "CCPA"]),
    _entry("Equifax", "https://www.equifax.com/personal/privacy/", "credit-reporting", "hard", response_days=45, laws=["FCRA", "CCPA"]),
    _entry("TransUnion", "https://www.transunion.com/consumer-privacy", "credit-reporting", "hard", response_days=45, laws=["FCRA", "CCPA"]),
    _entry("Innovis", "https://www.innovis.com/personal/optout", "credit-reporting", "medium", response_days=30, laws=["FCRA"]),
    # Risk, insurance and financial
    _entry("LexisNexis", "https://optout.lexisnexis.com/", "risk-management", "hard", response_days=30, laws=["FCRA", "CCPA"]),
    _entry("CoreLogic", "https://www.corelogic.com/privacy-center/", "risk-management", "medium", response_days=45),
    _entry("Verisk", "https://www.verisk.com/privacy/", "insurance", "hard", response_days=45, laws=["FCRA"]),
    _entry("Milliman IntelliScript", "https://www.milliman.com/en/privacy", "insurance", "medium", method="email", response_days=30),
    _entry("ChexSystems", "https://www.chexsystems.com/web/chexsystems/consumerdebit/page/securityfreeze", "financial", "medium", response_days=30, laws=["FCRA"]),
    _entry("Early Warning Services", "https://www.earlywarning.com/privacy", "financial", "hard", method="email", response_days=45),
    # Marketing and advertising
    _entry("Epsilon", "https://us.epsilon.com/consumer-information-privacy-request", "marketing", "medium", response_days=30, laws=["CCPA"]),
    _entry("TowerData", "https://www.towerdata.com/privacy-policy", "marketing", "easy", method="email"),
    _entry("Dynata", "https://www.dynata.com/opt-out/", "marketing", "medium", regions=["US", "EU"], laws=["GDPR", "CCPA"]),
    _entry("Oracle", "https://www.oracle.com/legal/privacy/marketing-opt-out.html", "advertising", "medium", regions=["US", "EU"], laws=["GDPR", "CCPA"]),
    _entry("Tapad", "https://www.tapad.com/privacy-policy", "advertising", "easy", method="email"),
    _entry("Mobilewalla", "https://www.mobilewalla.com/privacy-policy", "advertising", "medium", method="email"),
    _entry("Gravy Analytics", "https://gravyanalytics.com/privacy/", "advertising", "medium", method="email"),
    # Personal data aggregators
    _entry("Clearview AI", "https://clearview.ai/privacy-policy", "personal-data", "hard", method="email", regions=["US", "EU"], laws=["GDPR", "BIPA"]),
    _entry("PublicRecordsNow", "https://www.publicrecordsnow.com/optout/", "personal-data"),
    _entry("BlockShopper", "https://blockshopper.com/about/opt_out", "personal-data", "medium", method="email"),
    _entry("Homemetry", "https://homemetry.com/optout", "personal-data", "easy"),
    _entry("VoterRecords", "https://voterrecords.com/optout", "personal-data", "easy"),
    _entry("Ancestry", "https://www.ancestry.com/cs/legal/ccpa-personal-information-request-form", "personal-data", "medium", laws=["CCPA"], premium=True),
    # Social
    _entry("PeekYou", "https://www.peekyou.com/about/contact/", "social-media", "medium", method="email"),
    _entry("Social Catfish", "https://socialcatfish.com/opt-out/", "social-media", "medium"),
    # Background checks
    _entry("TruthFinder", "https://www.truthfinder.com/opt-out/", "background-check", "medium", premium=True),
    _entry("Instant Checkmate", "https://www.instantcheckmate.com/opt-out/", "background-check", "medium", premium=True),
    _entry("Advanced Background Checks", "https://www.advancedbackgroundchecks.com/removal", "background-check", "easy"),
    _entry("ArrestFacts", "https://arrestfacts.com/optout", "background-check", "easy"),
    _entry("Background Alert", "https://www.backgroundalert.com/optout", "background-check"),
    _entry("BackgroundCheck.Run", "https://backgroundcheck.run/optout", "background-check", "easy"),
    _entry("CheckPeople", "https://www.checkpeople.com/opt-out", "background-check"),
    _entry("CyberBackgroundChecks", "https://www.cyberbackgroundchecks.com/removal", "background-check", "easy"),
    _entry("FastBackgroundCheck", "https://www.fastbackgroundcheck.com/removal", "background-check", "easy"),
    _entry("SpyFly", "https://www.spyfly.com/opt-out", "background-check"),
    _entry("Arrests.org", "https://arrests.org/opt-out/", "background-check", "hard"),
    # People search
    _entry("MyLife", "https://www.mylife.com/ccpa/index.pubview", "people-search", "hard", laws=["CCPA"], premium=True),
    _entry("PeopleFinders", "https://www.peoplefinders.com/opt-out", "people-search"),
    _entry("PeopleSmart", "https://www.peoplesmart.com/opt-out", "people-search"),
    _entry("Radaris", "https://radaris.com/page/how-to-remove", "people-search", "hard", response_days=30),
    _entry("US Search", "https://www.ussearch.com/opt-out/", "people-search"),
    _entry("ZabaSearch", "https://www.zabasearch.com/block_records/", "people-search", "easy"),
    _entry("PeopleLookup", "https://www.peoplelookup.com/optout/", "people-search"),
    _entry("USPhoneBook", "https://www.usphonebook.com/opt-out", "people-search", "easy"),
    _entry("ClustrMaps", "https://clustrmaps.com/bl/opt-out", "people-search", "easy"),
    _entry("Addresses.com", "https://www.addresses.com/optout.php", "people-search", "easy"),
    _entry("AnyWho", "https://www.anywho.com/optout", "people-search", "easy"),
    _entry("CallTruth", "https://calltruth.com/optout", "people-search", "easy"),
    _entry("CocoFinder", "https://cocofinder.com/optout", "people-search", "easy"),
    _entry("FamilyTreeNow", "https://www.familytreenow.com/optout", "people-search"),
    _entry("GoLookUp", "https://golookup.com/optout", "people-search"),
    _entry("IdTrue", "https://www.idtrue.com/optout", "people-search", "easy"),
    _entry("That's Them", "https://thatsthem.com/opt-out", "people-search", "easy"),
    _entry("USA People Search", "https://www.usa-people-search.com/manage/optout", "people-search", "easy"),
    _entry("USA-Official", "https://www.usa-official.com/optout", "people-search", "easy"),
    _entry("Vericora", "https://vericora.com/opt-out", "people-search", "easy"),
    _entry("Veripages", "https://veripages.com/optout", "people-search", "easy"),
    _entry("411.com", "https://www.411.com/privacy/manage", "people-search"),
    _entry("411 Locate", "https://www.411locate.com/optout", "people-search", "easy"),
]

SEED_BROKERS = [broker.info.to_seed() for broker in list_brokers()] + _CATALOG

# Hosts the automation engine may target: these domains and their subdomains
ALLOWED_BROKER_DOMAINS = frozenset(entry["domain"] for entry in SEED_BROKERS)
