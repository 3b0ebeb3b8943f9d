from flowcatalog.compat import DEFAULT_TYPE_ANCESTRY, TypeResolver


def test_every_known_type_is_compatible_with_itself():
    resolver = TypeResolver()
    for type_name in DEFAULT_TYPE_ANCESTRY:
        assert resolver.is_compatible(type_name, type_name)


def test_ancestors_satisfy_but_not_the_reverse():
    resolver = TypeResolver()
    assert resolver.is_compatible("ChatOpenAI", "BaseChatModel")
    assert resolver.is_compatible("ChatOpenAI", "BaseLanguageModel")
    assert resolver.is_compatible("BufferMemory", "BaseMemory")
    assert not resolver.is_compatible("BaseChatModel", "ChatOpenAI")
    assert not resolver.is_compatible("ChatOpenAI", "BaseMemory")


def test_unknown_type_only_matches_itself():
    resolver = TypeResolver()
    assert "Mystery" not in resolver
    assert resolver.chain("Mystery") == ["Mystery"]
    assert resolver.is_compatible("Mystery", "Mystery")
    assert not resolver.is_compatible("Mystery", "Runnable")


def test_lookup_is_not_transitive():
    resolver = TypeResolver({"A": ["B"], "B": ["C"]})
    assert resolver.is_compatible("A", "B")
    assert resolver.is_compatible("B", "C")
    assert not resolver.is_compatible("A", "C")


def test_chain_and_satisfying_types():
    resolver = TypeResolver()
    assert resolver.chain("BufferMemory") == ["BufferMemory", "BaseChatMemory", "BaseMemory"]
    assert resolver.types_accepted_by("OpenAIEmbeddings") == ["OpenAIEmbeddings", "Embeddings"]
    satisfying = resolver.types_that_satisfy("BaseMemory")
    assert satisfying[0] == "BaseMemory"
    assert "BufferMemory" in satisfying
    assert "BaseChatMemory" in satisfying
    assert "ChatOpenAI" not in satisfying


def test_table_entries_win_over_extracted_chains():
    resolver = TypeResolver.with_extracted(
        {"ChatOpenAI": ["ChatOpenAI", "Custom"], "Agent": ["Agent", "Runnable"]}
    )
    assert not resolver.is_compatible("ChatOpenAI", "Custom")
    assert resolver.is_compatible("ChatOpenAI", "BaseChatModel")
    assert resolver.is_compatible("Agent", "Runnable")


def test_any_compatible():
    resolver = TypeResolver()
    assert resolver.any_compatible(["Mystery", "BufferMemory"], "BaseMemory")
    assert not resolver.any_compatible([], "BaseMemory")
