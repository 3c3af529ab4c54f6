"""
Grammar registry and the tree-sitter node kinds the instrumenter relies on.
"""

# language name -> (python module providing the grammar, pip package)
GRAMMAR_MODULES = {
    "cpp": ("tree_sitter_cpp", "tree-sitter-cpp"),
}

DEFAULT_LANGUAGE = "cpp"

# Node kinds (tree-sitter-cpp names)
FUNCTION_DEFINITION = "function_definition"
FUNCTION_DECLARATOR = "function_declarator"
COMPOUND_STATEMENT = "compound_statement"
PARAMETER_LIST = "parameter_list"
TYPE_QUALIFIER = "type_qualifier"
ERROR_NODE = "ERROR"

# Kinds accepted as a function name inside a declarator
NAME_NODE_TYPES = ("identifier", "field_identifier", "qualified_identifier")

# Field holding the function name on a function_declarator
DECLARATOR_FIELD = "declarator"
