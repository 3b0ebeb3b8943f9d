"""Type-compatibility resolver.

Compatibility is a plain lookup in a table of ancestor chains; there is no
transitive closure. A type missing from the table is compatible only with
itself.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

_RUNNABLE = "Runnable"

# concrete type -> ancestors, most specific first (the type itself is implied)
DEFAULT_TYPE_ANCESTRY: Dict[str, List[str]] = {
    # chat models
    "ChatOpenAI": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "AzureChatOpenAI": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "ChatAnthropic": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "ChatGoogleGenerativeAI": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "ChatMistralAI": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "ChatOllama": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "ChatGroq": ["BaseChatModel", "BaseLanguageModel", _RUNNABLE],
    "BaseChatModel": ["BaseLanguageModel", _RUNNABLE],
    # completion models
    "OpenAI": ["BaseLLM", "BaseLanguageModel", _RUNNABLE],
    "Ollama": ["BaseLLM", "BaseLanguageModel", _RUNNABLE],
    "BaseLLM": ["BaseLanguageModel", _RUNNABLE],
    "BaseLanguageModel": [_RUNNABLE],
    # embeddings
    "OpenAIEmbeddings": ["Embeddings"],
    "AzureOpenAIEmbeddings": ["Embeddings"],
    "OllamaEmbeddings": ["Embeddings"],
    "CohereEmbeddings": ["Embeddings"],
    # memory
    "BufferMemory": ["BaseChatMemory", "BaseMemory"],
    "BufferWindowMemory": ["BaseChatMemory", "BaseMemory"],
    "ConversationSummaryMemory": ["BaseChatMemory", "BaseMemory"],
    "BaseChatMemory": ["BaseMemory"],
    # vector stores and retrievers
    "Pinecone": ["VectorStoreRetriever", "BaseRetriever"],
    "Memory": ["VectorStoreRetriever", "BaseRetriever"],
    "Chroma": ["VectorStoreRetriever", "BaseRetriever"],
    "Qdrant": ["VectorStoreRetriever", "BaseRetriever"],
    "Faiss": ["VectorStoreRetriever", "BaseRetriever"],
    "Postgres": ["VectorStoreRetriever", "BaseRetriever"],
    "VectorStoreRetriever": ["BaseRetriever"],
    "MultiQueryRetriever": ["BaseRetriever"],
    # documents
    "RecursiveCharacterTextSplitter": ["TextSplitter", "BaseDocumentTransformer", _RUNNABLE],
    "CharacterTextSplitter": ["TextSplitter", "BaseDocumentTransformer", _RUNNABLE],
    "TokenTextSplitter": ["TextSplitter", "BaseDocumentTransformer", _RUNNABLE],
    "TextSplitter": ["BaseDocumentTransformer", _RUNNABLE],
    "Document": [],
    # tools
    "Calculator": ["Tool", "StructuredTool", "BaseLangChain"],
    "SerpAPI": ["Tool", "StructuredTool", "BaseLangChain"],
    "CustomTool": ["Tool", "StructuredTool", "BaseLangChain"],
    "RequestsGet": ["Tool", "StructuredTool", "BaseLangChain"],
    "RequestsPost": ["Tool", "StructuredTool", "BaseLangChain"],
    "ChainTool": ["DynamicTool", "Tool", "StructuredTool", "BaseLangChain"],
    "Tool": ["StructuredTool", "BaseLangChain"],
    # chains and agents
    "ConversationChain": ["LLMChain", "BaseChain", _RUNNABLE],
    "LLMChain": ["BaseChain", _RUNNABLE],
    "ConversationalRetrievalQAChain": ["BaseChain", _RUNNABLE],
    "RetrievalQAChain": ["BaseChain", _RUNNABLE],
    "AgentExecutor": ["BaseChain", _RUNNABLE],
    # prompts and parsers
    "ChatPromptTemplate": ["BaseChatPromptTemplate", "BasePromptTemplate", _RUNNABLE],
    "PromptTemplate": ["BaseStringPromptTemplate", "BasePromptTemplate", _RUNNABLE],
    "StructuredOutputParser": ["BaseLLMOutputParser", "BaseOutputParser", _RUNNABLE],
    # moderation and caches
    "Moderation": [],
    "InMemoryCache": ["BaseCache"],
}


def _with_self(type_name: str, chain: Sequence[str]) -> List[str]:
    ordered = [type_name]
    ordered.extend(item for item in chain if item and item != type_name and item not in ordered)
    return ordered


class TypeResolver:
    """Answers whether an output type may feed an input type."""

    def __init__(self, ancestry: Optional[Mapping[str, Sequence[str]]] = None):
        table = DEFAULT_TYPE_ANCESTRY if ancestry is None else ancestry
        self._chains: Dict[str, List[str]] = {name: _with_self(name, chain) for name, chain in table.items()}

    @classmethod
    def with_extracted(
        cls,
        extracted: Mapping[str, Sequence[str]],
        ancestry: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "TypeResolver":
        """Build a resolver whose table is extended by extracted chains.

        Table entries win; extracted chains only cover types the table lacks.
        """
        resolver = cls(ancestry)
        added = 0
        for name, chain in extracted.items():
            if name and name not in resolver._chains:
                resolver._chains[name] = _with_self(name, chain)
                added += 1
        logger.debug("Resolver extended with %d extracted chains", added)
        return resolver

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._chains

    def chain(self, type_name: str) -> List[str]:
        return list(self._chains.get(type_name, [type_name]))

    def is_compatible(self, source_type: str, required_type: str) -> bool:
        if source_type == required_type:
            return True
        return required_type in self._chains.get(source_type, ())

    def types_accepted_by(self, output_type: str) -> List[str]:
        return self.chain(output_type)

    def types_that_satisfy(self, input_type: str) -> List[str]:
        satisfying = [input_type]
        for name in sorted(self._chains):
            if name != input_type and input_type in self._chains[name]:
                satisfying.append(name)
        return satisfying

    def any_compatible(self, source_types: Iterable[str], required_type: str) -> bool:
        return any(self.is_compatible(source, required_type) for source in source_types)
