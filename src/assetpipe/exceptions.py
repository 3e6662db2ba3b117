__all__ = ('PipelineError', 'BuildError', 'FilterError', 'CompileError',
           'TaskError', 'ConfigError',)


class PipelineError(Exception):
    pass


class BuildError(PipelineError):
    pass


class FilterError(BuildError):
    pass


class CompileError(FilterError):
    """A source file could not be compiled. Tasks skip the file and
    carry on with the others.
    """

    def __init__(self, message, source_path=None):
        FilterError.__init__(self, message)
        self.source_path = source_path


class TaskError(PipelineError):

    def __init__(self, task, error):
        PipelineError.__init__(self, "'%s' failed: %s" % (task, error))
        self.task = task
        self.error = error


class ConfigError(PipelineError):
    pass
