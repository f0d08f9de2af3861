from adrewards.services.identity import Account, DirectoryIdentityResolver, PassthroughIdentityResolver

ACCOUNTS = [
    Account(id="acc-1", email="Alice@Example.com", external_id="ext-1", name="Alice"),
    Account(id="acc-2", email="bob@example.com", name="Bob"),
]


def test_passthrough_resolves_to_itself():
    identity = PassthroughIdentityResolver().resolve(" user-9 ")
    assert identity.canonical_id == "user-9"
    assert identity.aliases == frozenset({"user-9"})
    assert identity.matches("user-9")
    assert not identity.matches(None)


def test_direct_id_match():
    identity = DirectoryIdentityResolver(ACCOUNTS).resolve("acc-1")
    assert identity.canonical_id == "acc-1"
    assert identity.aliases == frozenset({"acc-1", "ext-1"})


def test_external_id_maps_to_canonical():
    identity = DirectoryIdentityResolver(ACCOUNTS).resolve("ext-1")
    assert identity.canonical_id == "acc-1"
    assert identity.raw_id == "ext-1"
    assert identity.matches("acc-1") and identity.matches("ext-1")


def test_email_fallback_is_case_insensitive():
    identity = DirectoryIdentityResolver(ACCOUNTS).resolve("provider-77", email="alice@example.COM")
    assert identity.canonical_id == "acc-1"
    assert identity.aliases == frozenset({"acc-1", "ext-1", "provider-77"})


def test_unknown_caller_resolves_to_itself():
    identity = DirectoryIdentityResolver(ACCOUNTS).resolve("stranger", email="nobody@example.com")
    assert identity.canonical_id == "stranger"
    assert identity.aliases == frozenset({"stranger"})


def test_register_replaces_existing_account():
    resolver = DirectoryIdentityResolver(ACCOUNTS)
    resolver.register(Account(id="acc-2", email="bob@new.example", external_id="ext-2"))
    assert resolver.resolve("ext-2").canonical_id == "acc-2"
    assert resolver.lookup("acc-2").email == "bob@new.example"
    assert resolver.lookup("missing") is None
