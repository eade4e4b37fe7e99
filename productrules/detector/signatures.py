"""Per-product signature tables consulted by the evidence extractors.

Adding a product means adding a ProductSignatures entry here. The scorer
never needs to know which products exist.

Matching rules:
  file_patterns:       fnmatch globs against file names (case-insensitive);
                       patterns containing "/" match the relative path.
  directories:         directory names, or multi-segment suffixes such as
                       "FrontEnd/modules/blueprints".
  dependency_prefixes: case-insensitive prefixes of declared dependency
                       names from any supported manifest.
  config_files:        exact configuration file names (case-insensitive).
"""

from dataclasses import dataclass

from productrules.detector.types import ProductId


@dataclass(frozen=True)
class ProductSignatures:
    product: ProductId
    file_patterns: tuple[str, ...] = ()
    directories: tuple[str, ...] = ()
    dependency_prefixes: tuple[str, ...] = ()
    config_files: tuple[str, ...] = ()


DEFAULT_SIGNATURES: tuple[ProductSignatures, ...] = (
    ProductSignatures(
        product=ProductId.COMMERCE,
        file_patterns=(
            "*Handler.cs",
            "*Pipeline.cs",
            "*.Blueprint.tsx",
            "*PipeBase.cs",
        ),
        directories=(
            "Extensions",
            "FrontEnd/modules/blueprints",
            "InsiteCommerce.Web",
        ),
        dependency_prefixes=(
            "InsiteCommerce",
            "Insite.",
            "insite-",
            "@insite/",
        ),
        config_files=(
            "systemsettings.config",
            "insite.config",
        ),
    ),
    ProductSignatures(
        product=ProductId.CONTENT_ONPREM,
        file_patterns=(
            "*.ascx",
            "*PageController.cs",
            "*BlockController.cs",
            "*InitializationModule.cs",
        ),
        directories=(
            "modules/_protected",
            "App_Data",
            "Views/Shared/DisplayTemplates",
        ),
        dependency_prefixes=(
            "EPiServer.CMS",
            "EPiServer.Framework",
            "EPiServer.Forms",
            "Optimizely.CMS",
        ),
        config_files=(
            "episerver.config",
            "episerverframework.config",
        ),
    ),
    ProductSignatures(
        product=ProductId.CONTENT_CLOUD,
        file_patterns=(
            "*.graphql",
            "codegen.ts",
        ),
        directories=(
            "src/cms",
            "cms/blocks",
        ),
        dependency_prefixes=(
            "@optimizely/cms-sdk",
            "@optimizely/graph",
            "@episerver/content-delivery",
            "optimizely-graph",
        ),
        config_files=(
            "optimizely.config.mjs",
            "optimizely-graph.config.json",
        ),
    ),
    ProductSignatures(
        product=ProductId.EXPERIMENTATION,
        file_patterns=(
            "*.experiment.ts",
            "*.experiment.js",
            "datafile.json",
        ),
        directories=(
            "experiments",
            "feature-flags",
        ),
        dependency_prefixes=(
            "@optimizely/optimizely-sdk",
            "@optimizely/react-sdk",
            "@optimizely/sdk",
            "optimizely-sdk",
            "Optimizely.SDK",
        ),
        config_files=(
            "optimizely.config.json",
        ),
    ),
    ProductSignatures(
        product=ProductId.DATA,
        file_patterns=(
            "*.odp.json",
        ),
        directories=(
            "odp",
            "customer-data",
        ),
        dependency_prefixes=(
            "@zaiusinc/",
            "@optimizely/odp",
            "zaius",
        ),
        config_files=(
            "odp.config.json",
        ),
    ),
    ProductSignatures(
        product=ProductId.MARKETING,
        file_patterns=(
            "campaign-*.json",
        ),
        directories=(
            "campaigns",
        ),
        dependency_prefixes=(
            "@optimizely/cmp",
            "@welcomesoftware/",
        ),
        config_files=(
            "campaign.config.json",
        ),
    ),
    ProductSignatures(
        product=ProductId.SEARCH,
        file_patterns=(
            "*SearchProvider.cs",
        ),
        directories=(
            "Find",
        ),
        dependency_prefixes=(
            "EPiServer.Find",
            "Optimizely.Graph.Search",
        ),
        config_files=(
            "search.config.json",
        ),
    ),
)
