from data_designer.plugins.plugin import Plugin, PluginType

credibility_lens_plugin = Plugin(
    config_qualified_name="data_designer_credibility.config.CredibilityColumnConfig",
    impl_qualified_name="data_designer_credibility.generator.CredibilityColumnGenerator",
    plugin_type=PluginType.COLUMN_GENERATOR,
)
