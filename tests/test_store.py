import pytest
from sqlalchemy.orm import Session

from flowcatalog.db import make_engine
from flowcatalog.normalizer import write_corpus
from flowcatalog.store import CatalogStore, StoreUnavailableError


def test_load_rebuilds_nested_tree(db_session, sample_definitions, sample_templates):
    write_corpus(db_session, sample_definitions, sample_templates)
    store = CatalogStore.load(db_session)

    assert len(store) == 5
    agent = store.get("agentAgentflow")
    messages = agent.inputs[1]
    assert [child.name for child in messages.children] == ["role", "content"]
    assert [option.name for option in messages.children[0].options] == ["system", "assistant"]
    assert messages.children[1].rows == 4

    chat = store.get("chatOpenAI")
    assert chat.credential.credential_names == ["openAIApi"]
    assert chat.outputs[0].base_classes == ["ChatOpenAI", "BaseChatModel", "BaseLanguageModel", "Runnable"]
    assert chat.inputs[1].default == "0.9"
    assert store.get_template("Agentic RAG").kind == "agentflowv2"


def test_open_missing_file_raises(tmp_path):
    with pytest.raises(StoreUnavailableError):
        CatalogStore.open(f"sqlite:///{tmp_path / 'missing.db'}")


def test_open_file_store(tmp_path, sample_definitions):
    url = f"sqlite:///{tmp_path / 'catalog.db'}"
    engine = make_engine(url)
    with Session(engine) as session:
        write_corpus(session, sample_definitions)
    engine.dispose()

    store = CatalogStore.open(url)
    assert "conversationChain" in store
    assert store.list_categories()[0] == {"name": "Agent Flows", "count": 2}


def test_snapshot_is_read_only(catalog_store):
    with pytest.raises(TypeError):
        catalog_store.definitions["x"] = None


def test_find_is_case_insensitive(catalog_store):
    assert catalog_store.find("ChatOpenAI").name == "chatOpenAI"
    assert catalog_store.get("ChatOpenAI") is None
    assert catalog_store.find("nope") is None


def test_list_definitions_filters_and_sorts(catalog_store):
    names = [item["name"] for item in catalog_store.list_definitions()]
    assert names == ["agentAgentflow", "startAgentflow", "conversationChain", "chatOpenAI", "bufferMemory"]
    memory = catalog_store.list_definitions(category="Memory")
    assert memory == [
        {
            "name": "bufferMemory",
            "label": "Buffer Memory",
            "category": "Memory",
            "description": "Retrieve chat messages stored in database",
            "type": "BufferMemory",
        }
    ]
    assert [item["name"] for item in catalog_store.list_definitions(search="openai")] == ["chatOpenAI"]


def test_search_matches_category_and_limits(catalog_store):
    results = catalog_store.search("agent flows")
    assert {item["name"] for item in results} == {"agentAgentflow", "startAgentflow"}
    assert "type" not in results[0]
    assert len(catalog_store.search("a", limit=2)) == 2


def test_list_templates(catalog_store):
    assert [t["name"] for t in catalog_store.list_templates(kind="chatflow")] == ["Simple Conversation Chain"]
    assert [t["name"] for t in catalog_store.list_templates(search="rag")] == ["Agentic RAG"]
    assert catalog_store.get_template("missing") is None


def test_type_chains(catalog_store):
    chains = catalog_store.type_chains()
    assert chains["BufferMemory"] == ["BufferMemory", "BaseChatMemory", "BaseMemory"]
    assert chains["Agent"] == ["Agent"]
