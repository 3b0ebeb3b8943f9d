import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flowcatalog.db import Base, make_engine
from flowcatalog.extraction.models import (
    CredentialSpec,
    DefinitionSpec,
    FlowTemplateSpec,
    InputFieldSpec,
    OptionSpec,
    OutputAnchorSpec,
)
from flowcatalog.store import CatalogStore
from flowcatalog.tools.catalog_tools import build_context

CHAT_OPENAI_SOURCE = """
import { BaseCache } from '@langchain/core/caches'
import { ICommonObject, INode, INodeData, INodeOptionsValue, INodeParams } from '../../../src/Interface'
import { getBaseClasses } from '../../../src/utils'

class ChatOpenAI_ChatModels implements INode {
    label: string
    name: string
    version: number
    type: string
    icon: string
    category: string
    description: string
    baseClasses: string[]
    credential: INodeParams
    inputs: INodeParams[]

    constructor() {
        // this.name = 'legacyChatOpenAI'
        this.label = 'ChatOpenAI'
        this.name = 'chatOpenAI'
        this.version = 8.2
        this.type = 'ChatOpenAI'
        this.icon = 'openai.svg'
        this.category = 'Chat Models'
        this.description = 'Wrapper around OpenAI large language models that use the Chat endpoint'
        this.baseClasses = [this.type, ...getBaseClasses(LangchainChatOpenAI)]
        this.credential = {
            label: 'Connect Credential',
            name: 'credential',
            type: 'credential',
            credentialNames: ['openAIApi']
        }
        this.inputs = [
            {
                label: 'Cache',
                name: 'cache',
                type: 'BaseCache',
                optional: true
            },
            {
                label: 'Model Name',
                name: 'modelName',
                type: 'asyncOptions',
                loadMethod: 'listModels',
                default: 'gpt-4o-mini'
            },
            {
                label: 'Temperature',
                name: 'temperature',
                type: 'number',
                step: 0.1,
                default: 0.9,
                optional: true
            },
            {
                label: 'Streaming',
                name: 'streaming',
                type: 'boolean',
                default: true,
                optional: true,
                additionalParams: true
            },
            {
                label: 'Image Resolution',
                description: 'This parameter controls the resolution in which the model views the image.',
                name: 'imageResolution',
                type: 'options',
                options: [
                    { label: 'Low', name: 'low' },
                    { label: 'High', name: 'high' },
                    { label: 'Auto', name: 'auto' }
                ],
                default: 'low',
                optional: false,
                show: { allowImageUploads: true },
                additionalParams: true
            }
        ]
    }

    //@ts-ignore
    loadMethods = {
        async listModels(): Promise<INodeOptionsValue[]> {
            return await getModels(MODEL_TYPE.CHAT, 'chatOpenAI')
        }
    }

    async init(nodeData: INodeData, _: string, options: ICommonObject): Promise<any> {
        const temperature = nodeData.inputs?.temperature as string
        const url = 'https://api.openai.com/v1' // default endpoint
        return new LangchainChatOpenAI({ temperature: parseFloat(temperature), url })
    }
}

module.exports = { nodeClass: ChatOpenAI_ChatModels }
"""

AGENT_SOURCE = """
import { ICommonObject, INode, INodeData, INodeParams } from '../../../src/Interface'

class Agent_Agentflow implements INode {
    label: string
    name: string
    version: number
    description: string
    type: string
    icon: string
    category: string
    color: string
    baseClasses: string[]
    inputs: INodeParams[]

    constructor() {
        this.label = 'Agent'
        this.name = 'agentAgentflow'
        this.version = 1.0
        this.type = 'Agent'
        this.category = 'Agent Flows'
        this.description = 'Dynamically choose and utilize tools during runtime, enabling multi-step reasoning'
        this.color = '#4DD0E1'
        this.baseClasses = [this.type]
        this.inputs = [
            {
                label: 'Model',
                name: 'agentModel',
                type: 'asyncOptions',
                loadMethod: 'listModels',
                loadConfig: true
            },
            {
                label: 'Messages',
                name: 'agentMessages',
                type: 'array',
                optional: true,
                acceptVariable: true,
                array: [
                    {
                        label: 'Role',
                        name: 'role',
                        type: 'options',
                        options: [
                            { label: 'System', name: 'system' },
                            { label: 'Assistant', name: 'assistant' }
                        ]
                    },
                    {
                        label: 'Content',
                        name: 'content',
                        type: 'string',
                        acceptVariable: true,
                        generateInstruction: true,
                        rows: 4
                    },
                    { label: 'Note', name: 'note', type: 'string', placeholder: 'Optional note' }
                ]
            }
        ]
    }
}

module.exports = { nodeClass: Agent_Agentflow }
"""


@pytest.fixture
def chat_openai_source():
    return CHAT_OPENAI_SOURCE


@pytest.fixture
def agent_source():
    return AGENT_SOURCE


def _with_default_anchor(spec: DefinitionSpec) -> DefinitionSpec:
    spec.outputs = [OutputAnchorSpec(name=spec.name, label=spec.label, base_classes=list(spec.base_classes))]
    return spec


def _sample_definitions():
    chat = DefinitionSpec(
        name="chatOpenAI",
        label="ChatOpenAI",
        version=8.2,
        type="ChatOpenAI",
        category="Chat Models",
        description="Wrapper around OpenAI large language models that use the Chat endpoint",
        base_classes=["ChatOpenAI", "BaseChatModel", "BaseLanguageModel", "Runnable"],
        inputs=[
            InputFieldSpec(
                name="modelName", label="Model Name", type="asyncOptions", load_method="listModels", default="gpt-4o-mini"
            ),
            InputFieldSpec(name="temperature", label="Temperature", type="number", step=0.1, default=0.9, optional=True),
        ],
        credential=CredentialSpec(credential_names=["openAIApi"]),
    )
    memory = DefinitionSpec(
        name="bufferMemory",
        label="Buffer Memory",
        version=2.0,
        type="BufferMemory",
        category="Memory",
        description="Retrieve chat messages stored in database",
        base_classes=["BufferMemory", "BaseChatMemory", "BaseMemory"],
        inputs=[
            InputFieldSpec(name="sessionId", label="Session Id", type="string", optional=True, additional_params=True),
        ],
    )
    chain = DefinitionSpec(
        name="conversationChain",
        label="Conversation Chain",
        version=3.0,
        type="ConversationChain",
        category="Chains",
        description="Chat models specific conversational chain with memory",
        base_classes=["ConversationChain", "LLMChain", "BaseChain", "Runnable"],
        inputs=[
            InputFieldSpec(name="model", label="Chat Model", type="BaseChatModel"),
            InputFieldSpec(name="memory", label="Memory", type="BaseMemory"),
            InputFieldSpec(
                name="systemMessagePrompt",
                label="System Message",
                type="string",
                rows=4,
                optional=True,
                additional_params=True,
            ),
        ],
    )
    agent = DefinitionSpec(
        name="agentAgentflow",
        label="Agent",
        type="Agent",
        category="Agent Flows",
        description="Dynamically choose and utilize tools during runtime, enabling multi-step reasoning",
        base_classes=["Agent"],
        color="#4DD0E1",
        inputs=[
            InputFieldSpec(name="agentModel", label="Model", type="asyncOptions", load_method="listModels", load_config=True),
            InputFieldSpec(
                name="agentMessages",
                label="Messages",
                type="array",
                optional=True,
                children=[
                    InputFieldSpec(
                        name="role",
                        label="Role",
                        type="options",
                        options=[OptionSpec(label="System", name="system"), OptionSpec(label="Assistant", name="assistant")],
                    ),
                    InputFieldSpec(name="content", label="Content", type="string", rows=4),
                ],
            ),
        ],
    )
    start = DefinitionSpec(
        name="startAgentflow",
        label="Start",
        type="Start",
        category="Agent Flows",
        description="Starting point of the agentflow",
        base_classes=["Start"],
        hide_input=True,
        inputs=[
            InputFieldSpec(
                name="startInputType",
                label="Input Type",
                type="options",
                default="chatInput",
                options=[OptionSpec(label="Chat Input", name="chatInput"), OptionSpec(label="Form Input", name="formInput")],
            ),
        ],
    )
    return [_with_default_anchor(spec) for spec in (chat, memory, chain, agent, start)]


def _sample_templates():
    return [
        FlowTemplateSpec(
            name="Simple Conversation Chain",
            kind="chatflow",
            description="Basic example of Conversation Chain with built-in memory",
            usecases=["Basic"],
            nodes=[
                {
                    "id": "chatOpenAI_0",
                    "data": {"name": "chatOpenAI", "baseClasses": ["ChatOpenAI", "BaseChatModel", "BaseLanguageModel", "Runnable"]},
                }
            ],
            edges=[],
        ),
        FlowTemplateSpec(
            name="Agentic RAG",
            kind="agentflowv2",
            description="An agent that retrieves documents before answering",
            usecases=["Documents QnA"],
            nodes=[{"id": "agentAgentflow_0", "data": {"name": "agentAgentflow", "baseClasses": ["Agent"]}}],
            edges=[],
        ),
    ]


@pytest.fixture
def sample_definitions():
    return _sample_definitions()


@pytest.fixture
def sample_templates():
    return _sample_templates()


@pytest.fixture
def catalog_store():
    return CatalogStore(_sample_definitions(), _sample_templates())


@pytest.fixture
def catalog_context(catalog_store):
    return build_context(catalog_store)


@pytest.fixture
def db_session():
    engine = make_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
