from flowcatalog.builder import (
    SKELETONS,
    build_edge,
    build_node,
    find_compatible_definitions,
    generate_flow_skeleton,
)


def test_build_node_splits_params_and_anchors(catalog_store):
    node = build_node(catalog_store.get("conversationChain"), "chain_0", {"x": 10, "y": 20}, {"systemMessagePrompt": "Be brief"})
    assert node["id"] == "chain_0"
    assert node["type"] == "customNode"
    assert node["position"] == {"x": 10, "y": 20}

    data = node["data"]
    assert [anchor["id"] for anchor in data["inputAnchors"]] == [
        "chain_0-input-model-BaseChatModel",
        "chain_0-input-memory-BaseMemory",
    ]
    assert [param["name"] for param in data["inputParams"]] == ["systemMessagePrompt"]
    assert data["inputs"] == {"model": "", "memory": "", "systemMessagePrompt": "Be brief"}
    assert data["outputAnchors"] == [
        {
            "id": "chain_0-output-conversationChain-ConversationChain|LLMChain|BaseChain|Runnable",
            "name": "conversationChain",
            "label": "Conversation Chain",
            "description": "",
            "type": "ConversationChain | LLMChain | BaseChain | Runnable",
        }
    ]
    assert "credential" not in data


def test_build_node_defaults_and_credential(catalog_store):
    data = build_node(catalog_store.get("chatOpenAI"), "chatOpenAI_0")["data"]
    assert data["inputs"] == {"modelName": "gpt-4o-mini", "temperature": 0.9}
    assert data["credential"] == ""
    assert data["baseClasses"] == ["ChatOpenAI", "BaseChatModel", "BaseLanguageModel", "Runnable"]


def test_agentflow_nodes_use_agentflow_type(catalog_store):
    node = build_node(catalog_store.get("agentAgentflow"), "agent_0")
    assert node["type"] == "agentFlow"
    messages = node["data"]["inputParams"][1]
    assert [child["name"] for child in messages["array"]] == ["role", "content"]


def test_build_node_placeholder_for_unknown_definition():
    node = build_node(None, "x_0", fallback_name="mysteryNode")
    assert node["data"]["name"] == "mysteryNode"
    assert node["position"] == {"x": 0, "y": 0}


def test_build_edge(catalog_store):
    edge = build_edge("chatOpenAI_0", catalog_store.get("chatOpenAI"), "chain_0", catalog_store.get("conversationChain"), "model")
    assert edge["sourceHandle"] == "chatOpenAI_0-output-chatOpenAI-ChatOpenAI|BaseChatModel|BaseLanguageModel|Runnable"
    assert edge["targetHandle"] == "chain_0-input-model-BaseChatModel"
    assert edge["type"] == "buttonedge"

    agent_edge = build_edge(
        "start_0", catalog_store.get("startAgentflow"), "agent_0", catalog_store.get("agentAgentflow"), "input"
    )
    assert agent_edge["type"] == "agentFlow"
    assert agent_edge["targetHandle"] == "agent_0-input-input-Start"

    bare = build_edge("a", None, "b", None, "x")
    assert bare["id"] == "a-b"


def test_simple_chatbot_skeleton_validates(catalog_context):
    skeleton = generate_flow_skeleton(catalog_context.store, "simple_chatbot")
    assert skeleton["description"] == SKELETONS["simple_chatbot"]["description"]
    assert [node["id"] for node in skeleton["nodes"]] == ["chatModel_0", "memory_0", "chain_0"]
    assert len(skeleton["edges"]) == 2
    assert "missing_definitions" not in skeleton

    result = catalog_context.validator.validate(skeleton["nodes"], skeleton["edges"])
    assert result.valid
    assert result.warnings == []


def test_skeleton_reports_missing_definitions(catalog_store):
    skeleton = generate_flow_skeleton(catalog_store, "rag_chatbot", chat_model="ChatOpenAI")
    assert skeleton["nodes"][0]["data"]["name"] == "chatOpenAI"
    assert "pinecone" in skeleton["missing_definitions"]
    assert "chatOpenAI" not in skeleton["missing_definitions"]


def test_unknown_use_case(catalog_store):
    result = generate_flow_skeleton(catalog_store, "time_machine")
    assert result["error"].startswith("Unknown use case: time_machine")


def test_find_compatible_definitions(catalog_context):
    store, resolver = catalog_context.store, catalog_context.resolver
    inputs = find_compatible_definitions(store, resolver, "conversationChain", "inputs")
    assert {item["name"] for item in inputs["compatible_inputs"]} == {"chatOpenAI", "bufferMemory"}

    outputs = find_compatible_definitions(store, resolver, "chatOpenAI", "outputs")
    assert [item["name"] for item in outputs["compatible_outputs"]] == ["conversationChain"]

    assert "error" in find_compatible_definitions(store, resolver, "nope", "inputs")
    assert "error" in find_compatible_definitions(store, resolver, "chatOpenAI", "sideways")
