"""
Base generator interface for all binding generation targets.

Defines the contract that all language generators must implement.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
from pathlib import Path

from ..logging_config import get_logger
from .accessors import CompiledSchema
from .config import GeneratorConfig
from .errors import BindingError
from .schema import ValueSetKind
from .templates import TemplateEngine, TemplateError, create_template_engine

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class CodeGenerator(ABC):
    """Abstract base class for all binding generators."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize generator with optional configuration."""
        self.config = config or GeneratorConfig()
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this generator."""
        template_dir = self.get_template_directory()
        if template_dir:
            self._template_engine = create_template_engine(template_dir)
        else:
            # Fallback to in-memory templates
            self._template_engine = create_template_engine()

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Return the name of the target language (e.g., 'python')."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Return the file extension for generated files (e.g., '.py')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this generator.

        Subclasses should override this to provide their template directory.
        Return None to use in-memory templates only.

        Returns:
            Path to template directory or None
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def generate(self, compiled: CompiledSchema) -> str:
        """
        Generate source code for a compiled schema.

        Args:
            compiled: Output of the compile stage

        Returns:
            Generated code as a string
        """
        pass

    def validate(self, compiled: CompiledSchema) -> List[str]:
        """
        Check a compiled schema for issues worth reporting.

        Language generators may override this to add language-specific checks.

        Args:
            compiled: Compiled schema to check

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if not compiled.accessors:
            warnings.append(f"Schema '{compiled.schema_id}' generates no accessors")

        for directive in compiled.unused_directives:
            warnings.append(f"Directive {directive} matches no key")

        return warnings

    def format_code(self, code: str) -> str:
        """
        Apply language-specific formatting to generated code.

        Args:
            code: Raw generated code

        Returns:
            Formatted code
        """
        # Basic cleanup - remove excessive blank lines
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:  # Allow max 2 consecutive blank lines
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines).strip("\n") + "\n"

    # Template helper methods

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(generator: CodeGenerator, compiled: CompiledSchema) -> GenerationResult:
    """
    Generate code using the specified generator with error handling.

    Args:
        generator: Code generator instance
        compiled: Output of the compile stage

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    try:
        warnings = generator.validate(compiled)
        code = generator.generate(compiled)
        formatted_code = generator.format_code(code)

        metadata = {
            "language": generator.language_name,
            "file_extension": generator.file_extension,
            "schema_id": compiled.schema_id,
            "accessor_count": len(compiled.accessors),
            "skipped_count": len(compiled.definition.keys) - len(compiled.accessors),
            "enum_count": sum(1 for s in compiled.used_value_sets if s.kind is ValueSetKind.ENUM),
            "flags_count": sum(1 for s in compiled.used_value_sets if s.kind is ValueSetKind.FLAGS),
            "default_constructible": compiled.default_constructible,
        }

        logger.info(
            "Generated %s bindings for '%s'", generator.language_name, compiled.schema_id
        )
        return GenerationResult(formatted_code, warnings, metadata)

    except (BindingError, GeneratorError, TemplateError) as e:
        logger.debug("Generation failed", exc_info=True)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)
