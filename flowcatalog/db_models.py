"""SQLAlchemy models for the normalized definition catalog."""
from __future__ import annotations

from sqlalchemy import Boolean, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowcatalog.db import Base


class Definition(Base):
    __tablename__ = "definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    label: Mapped[str] = mapped_column(String(200))
    version: Mapped[float] = mapped_column(Float, default=1.0)
    type: Mapped[str] = mapped_column(String(200))
    icon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_classes: Mapped[list] = mapped_column(JSON, default=list)
    file_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_agentflow: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hide_input: Mapped[bool] = mapped_column(Boolean, default=False)
    hide_output: Mapped[bool] = mapped_column(Boolean, default=False)
    hint: Mapped[str | None] = mapped_column(Text, nullable=True)
    documentation: Mapped[str | None] = mapped_column(String(500), nullable=True)
    tags: Mapped[list | None] = mapped_column(JSON, nullable=True)
    badge: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deprecate_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str | None] = mapped_column(String(200), nullable=True)
    warning: Mapped[str | None] = mapped_column(Text, nullable=True)

    inputs = relationship("InputField", back_populates="definition", cascade="all, delete-orphan")
    outputs = relationship("OutputAnchor", back_populates="definition", cascade="all, delete-orphan")
    credential = relationship("Credential", back_populates="definition", uselist=False, cascade="all, delete-orphan")


class InputField(Base):
    __tablename__ = "input_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    definition_name: Mapped[str] = mapped_column(ForeignKey("definitions.name", ondelete="CASCADE"), index=True)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("input_fields.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(200))
    label: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    placeholder: Mapped[str | None] = mapped_column(Text, nullable=True)
    rows: Mapped[int | None] = mapped_column(Integer, nullable=True)
    warning: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, default=False)
    is_additional_params: Mapped[bool] = mapped_column(Boolean, default=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    load_method: Mapped[str | None] = mapped_column(String(200), nullable=True)
    load_config: Mapped[bool] = mapped_column(Boolean, default=False)
    load_previous_nodes: Mapped[bool] = mapped_column(Boolean, default=False)
    accept_variable: Mapped[bool] = mapped_column(Boolean, default=False)
    accept_node_output: Mapped[bool] = mapped_column(Boolean, default=False)
    refresh: Mapped[bool] = mapped_column(Boolean, default=False)
    free_solo: Mapped[bool] = mapped_column(Boolean, default=False)
    is_list: Mapped[bool] = mapped_column(Boolean, default=False)
    step: Mapped[float | None] = mapped_column(Float, nullable=True)
    file_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    code_example: Mapped[str | None] = mapped_column(Text, nullable=True)
    hide_code_execute: Mapped[bool] = mapped_column(Boolean, default=False)
    generate_instruction: Mapped[bool] = mapped_column(Boolean, default=False)
    generate_doc_store_desc: Mapped[bool] = mapped_column(Boolean, default=False)
    hint: Mapped[dict | str | None] = mapped_column(JSON, nullable=True)
    tab_identifier: Mapped[str | None] = mapped_column(String(200), nullable=True)
    datagrid: Mapped[list | None] = mapped_column(JSON, nullable=True)
    show_condition: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    hide_condition: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    credential_names: Mapped[list | None] = mapped_column(JSON, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    definition = relationship("Definition", back_populates="inputs")
    parent = relationship("InputField", remote_side=[id], back_populates="children")
    children = relationship("InputField", back_populates="parent", cascade="all, delete-orphan")
    options = relationship("InputOption", back_populates="input_field", cascade="all, delete-orphan")


class InputOption(Base):
    __tablename__ = "input_options"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    input_field_id: Mapped[int] = mapped_column(ForeignKey("input_fields.id", ondelete="CASCADE"), index=True)
    label: Mapped[str] = mapped_column(String(500))
    name: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_src: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    input_field = relationship("InputField", back_populates="options")


class OutputAnchor(Base):
    __tablename__ = "output_anchors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    definition_name: Mapped[str] = mapped_column(ForeignKey("definitions.name", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(200))
    label: Mapped[str] = mapped_column(String(200))
    type_chain: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_classes: Mapped[list | None] = mapped_column(JSON, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    is_anchor: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    definition = relationship("Definition", back_populates="outputs")


class Credential(Base):
    __tablename__ = "credential_specs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    definition_name: Mapped[str] = mapped_column(
        ForeignKey("definitions.name", ondelete="CASCADE"), unique=True, index=True
    )
    label: Mapped[str] = mapped_column(String(200))
    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(64), default="credential")
    credential_names: Mapped[list | None] = mapped_column(JSON, nullable=True)

    definition = relationship("Definition", back_populates="credential")


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)
    count: Mapped[int] = mapped_column(Integer, default=0)


class FlowTemplate(Base):
    __tablename__ = "flow_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    kind: Mapped[str] = mapped_column(String(32), index=True)
    usecases: Mapped[list | None] = mapped_column(JSON, nullable=True)
    nodes: Mapped[list] = mapped_column(JSON, default=list)
    edges: Mapped[list] = mapped_column(JSON, default=list)
