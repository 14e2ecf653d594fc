class BaseModel:
    """
    Base model class. Override this to define your own ODE model classes.
    """
    def get_metadata(self):
        """
        Return model metadata information. Used for constructing result pandas DataFrame objects.

        Returns:
            A dict with model metadata information.
        """
        raise NotImplementedError

    def __call__(self, *args, **kwargs):
        """
        BaseModel call operator. Overload this to use your model with builtin step functions.

        Returns:
            A state vector corresponding to the right hand side of y' = f(t,y).

        """
        raise NotImplementedError
